"""Jinja2 rendering of notification email bodies."""
from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Iterable

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from app.models.database_models import Task, User


TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"


def _format_due_date(value: date | None) -> str:
    if value is None:
        return "no due date"
    return value.strftime("%d %b %Y")


class EmailRenderer:
    """Render plain-text and HTML bodies from templates in ``app/templates/emails``."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["due_date"] = _format_due_date

    def render(self, template_name: str, context: dict[str, Any]) -> tuple[str, str]:
        """Return ``(text_body, html_body)`` for ``<template_name>.txt`` / ``.html``."""

        text_body = self.env.get_template(f"{template_name}.txt").render(**context)
        html_body = self.env.get_template(f"{template_name}.html").render(**context)
        return text_body, html_body

    def render_pending_tasks(self, receiver: User, tasks: Iterable[Task]) -> tuple[str, str]:
        tasks = list(tasks)
        return self.render(
            "pending_tasks",
            {
                "receiver_name": receiver.name or receiver.email,
                "tasks": tasks,
                "task_count": len(tasks),
            },
        )
