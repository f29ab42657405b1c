"""Exceptions raised by the post store, the codec and the git bridge."""


class HugsError(Exception):
    """Base class for every error raised by hugs."""


class PostNotFoundError(HugsError):
    """The requested post file does not exist."""


class ValidationError(HugsError):
    """A required value is missing or unusable."""


class MissingTitleError(ValidationError):
    def __init__(self, message: str = 'title not found in content'):
        super().__init__(message)


class FormatError(HugsError):
    """Metadata is present but cannot be interpreted."""


class InvalidDateError(FormatError):
    def __init__(self, value: str):
        super().__init__(f'invalid date format: {value!r}')
        self.value = value


class PostExistsError(HugsError):
    """A new post would overwrite an existing file."""


class ExternalToolError(HugsError):
    """git or the preview server failed."""
