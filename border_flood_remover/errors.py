class BackgroundRemovalError(ValueError):
    """Base class for inputs the background remover refuses to process."""


class InvalidDimensionsError(BackgroundRemovalError):
    """Width/height, buffer length or mask shape do not describe one image."""


class InvalidParameterError(BackgroundRemovalError):
    """A classification parameter is outside its documented range."""


class RunSupersededError(RuntimeError):
    """A newer run was started before this one could commit its result."""

    def __init__(self, token: int, current: int):
        super().__init__(f"Run {token} superseded by run {current}")
        self.token = token
        self.current = current
