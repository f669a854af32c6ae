"""Exceptions shared by the content transformers."""


class ConversionError(Exception):
    """A content transformer could not migrate an entry.

    Recoverable: the entry is reported as failed while the surrounding
    archive carries on with its remaining entries. Transformers copy the
    original bytes to the destination before raising, so the container
    being written stays complete.
    """
    pass
