"""Exceptions raised by graphsim."""


class InputFormatError(ValueError):
    """Fatal input problem: wrong input type, bad shape, or violated precondition.

    Raised before any result is produced. Numerical problems with a
    synthesized sigma matrix are not errors; they are corrected and logged.
    """
