"""Exceptions raised by seatassign."""


class InputError(ValueError):
    """The roster, layout, or options cannot produce an arrangement."""


class MalformedPreferenceData(ValueError):
    """A preference payload has an unrecognized shape."""
