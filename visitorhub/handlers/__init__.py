from . import notification  # noqa
