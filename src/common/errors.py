"""Errors that control how the enrichment run proceeds."""

from __future__ import annotations


class PipelineCriticalError(Exception):
    """Failure that stops processing of the current question.

    The CLI treats it as a stop-the-run condition; it is never retried.
    """

    def __init__(self, message: str, step_name: str, question_folder: str | None = None):
        super().__init__(message)
        self.step_name = step_name
        self.question_folder = question_folder


class MissingConfigError(PipelineCriticalError):
    """Configuration is missing or invalid."""


def create_missing_file_error(
    question_folder: str,
    file_path: str,
    step_name: str,
) -> PipelineCriticalError:
    """Build the error raised when a required input file does not exist."""
    return PipelineCriticalError(
        f"Required data file not found for {question_folder} at {file_path}. "
        "Previous pipeline step may have failed.",
        step_name,
        question_folder,
    )


def create_missing_data_error(
    question_folder: str,
    data_type: str,
    previous_step: str,
    step_name: str,
) -> PipelineCriticalError:
    """Build the error raised when a required input array is missing or empty."""
    return PipelineCriticalError(
        f"{data_type} not found for {question_folder}. {previous_step} step may have failed.",
        step_name,
        question_folder,
    )
