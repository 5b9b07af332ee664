class KanjiDrillError(Exception):
    """Base class for failures that are reported to the learner."""


class ResourceFetchError(KanjiDrillError):
    """The default workbook could not be fetched or read."""


class WorkbookFormatError(KanjiDrillError):
    """The supplied bytes are not a readable xlsx workbook."""


class EmptySelectionError(KanjiDrillError):
    """A quiz was started with a filter that matches no kanji."""


class SessionStateError(KanjiDrillError):
    """A quiz action was invoked while the session is not running."""
