"""Structured responses returned by action handlers."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class ActionResponse:
    """
    Page-like response of an action, rendered by the host.

    Empty fields are left out of the serialized form.
    """

    html_title: str = ""
    html_head: str = ""
    html_body: str = ""
    subject: str = ""
    text_body: str = ""
    no_layout: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the host, dropping empty fields."""
        data = {
            "html_title": self.html_title,
            "html_head": self.html_head,
            "html_body": self.html_body,
            "subject": self.subject,
            "text_body": self.text_body,
            "no_layout": self.no_layout,
        }
        return {key: value for key, value in data.items() if value}
