"""Operator confirmation for destructive or overriding steps.

Provides an interactive CLI prompt plus fixed handlers for non-interactive runs.
"""

from __future__ import annotations


class ApprovalHandler:
    """Asks the operator a yes/no question."""

    def __init__(self, interactive: bool = True):
        """
        Initialize approval handler.

        Args:
            interactive: If True, prompt on the terminal; if False, decline
        """
        self.interactive = interactive

    def confirm(self, message: str) -> bool:
        """
        Request confirmation.

        Args:
            message: Question shown to the operator

        Returns:
            True if confirmed, False if declined
        """
        if self.interactive:
            return self._cli_prompt(message)
        return False

    def _cli_prompt(self, message: str) -> bool:
        while True:
            try:
                response = input(f"{message} [y/N]: ").strip().lower()
            except EOFError:
                # Closed stdin counts as "no".
                return False

            if response in ["y", "yes"]:
                return True
            elif response in ["n", "no", ""]:
                return False
            else:
                print("Invalid response. Please enter y(es) or n(o).")


class AlwaysApproveHandler(ApprovalHandler):
    """Pre-authorized: every question is answered yes (--yes)."""

    def __init__(self) -> None:
        super().__init__(interactive=False)

    def confirm(self, message: str) -> bool:
        return True


class AlwaysRejectHandler(ApprovalHandler):
    """Non-interactive without pre-authorization: every question is answered no."""

    def __init__(self) -> None:
        super().__init__(interactive=False)

    def confirm(self, message: str) -> bool:
        return False
