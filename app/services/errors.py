"""
Service-level exceptions for the editorial pipeline.

Soft failures (a chunk that fails to parse, a search miss) never raise; they
degrade the data and the pipeline moves on. The types here are for failures
that end a task or the whole request.
"""


class InvalidRequestError(ValueError):
    """Request can't be processed at all (no text, no task selected, bad platform)."""

    pass


class TaskParseError(Exception):
    """A task's model reply could not be decoded into the expected shape."""

    def __init__(self, task: str, reason: str):
        self.task = task
        self.reason = reason
        super().__init__(f"Could not parse {task} reply: {reason}")


class MarkupTaskError(Exception):
    """Every chunk of a copy-edit or claim-flag run failed."""

    def __init__(self, task: str, failed_chunks: int):
        self.task = task
        self.failed_chunks = failed_chunks
        super().__init__(f"{task} failed on all {failed_chunks} chunks")
