"""Ledger-side registration point for commit hooks.

The ledger owns one CommitHookHost. Hooks are installed at process start and
uninstalled at stop; ``notify_commit`` is called exactly once per committed
block, synchronously, on the ledger's commit path.

A hook can never fail a commit. Whatever a hook raises is logged here and
swallowed, so the ledger's own transaction is unaffected.
"""

import threading
from typing import Any, List, Optional, Sequence

from neo_pubsub.protocols import CommitHookProtocol, ExecutionRecord, LoggerProtocol
from neo_pubsub.utils.logging import get_component_logger


class CommitHookHost:
    """Holds installed commit hooks and fans each commit out to them."""

    def __init__(self, logger: Optional[LoggerProtocol] = None) -> None:
        self._hooks: List[CommitHookProtocol] = []
        self._lock = threading.Lock()
        self._logger = get_component_logger("commit_hook_host", logger)

    def install(self, hook: CommitHookProtocol) -> None:
        """Install a hook. Installing the same hook twice is a no-op."""
        with self._lock:
            if hook in self._hooks:
                return
            self._hooks.append(hook)
        self._logger.info("commit_hook_installed", hook=type(hook).__name__)

    def uninstall(self, hook: CommitHookProtocol) -> bool:
        """Remove a hook.

        Returns:
            True if the hook was installed
        """
        with self._lock:
            try:
                self._hooks.remove(hook)
            except ValueError:
                return False
        self._logger.info("commit_hook_uninstalled", hook=type(hook).__name__)
        return True

    @property
    def hooks(self) -> List[CommitHookProtocol]:
        with self._lock:
            return list(self._hooks)

    def should_throw_from_commit(self, error: BaseException) -> bool:
        """Hooks never propagate errors into the ledger."""
        return False

    def notify_commit(self, block: Any, execution_records: Sequence[ExecutionRecord]) -> None:
        """Invoke every installed hook for one committed block."""
        for hook in self.hooks:
            try:
                hook.on_commit(block, execution_records)
            except Exception as e:
                if self.should_throw_from_commit(e):
                    raise
                self._logger.error(
                    "commit_hook_failed",
                    hook=type(hook).__name__,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    def shutdown(self) -> None:
        """Uninstall every hook, closing those that hold resources."""
        for hook in self.hooks:
            self.uninstall(hook)
            close = getattr(hook, "close", None)
            if callable(close):
                try:
                    close()
                except Exception as e:
                    self._logger.warning(
                        "commit_hook_close_failed",
                        hook=type(hook).__name__,
                        error=str(e),
                    )


__all__ = ["CommitHookHost"]
