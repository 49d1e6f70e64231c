"""Playback states."""

from __future__ import annotations

from enum import Enum


class PlaybackState(str, Enum):
    CHECKOUT = "checkout"
    OPENING_FILE = "opening_file"
    MOVING_CURSOR = "moving_cursor"
    TYPING = "typing"
    DELETING_LINE = "deleting_line"
    INSERTING_LINE = "inserting_line"
    WAITING_BETWEEN_HUNKS = "waiting_between_hunks"
    GIT_ADD = "git_add"
    GIT_COMMIT = "git_commit"
    GIT_PUSH = "git_push"
    WAITING_FOR_NEXT = "waiting_for_next"
    FINISHED = "finished"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


__all__ = ["PlaybackState"]
