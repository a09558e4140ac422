"""Episode playback sequencing."""

from .controller import LOADING_MESSAGE, DownloadOutcome, PlayerController, PlayerState

__all__ = ["DownloadOutcome", "LOADING_MESSAGE", "PlayerController", "PlayerState"]
