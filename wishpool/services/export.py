from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from wishpool.db import Participant, repo
from wishpool.services import pool

HEADER = ["participant", "wish", "giver", "receiver", "receiver_wish"]
SPECIAL_CHARS = (",", "\"", "\r", "\n")


@dataclass(frozen=True)
class ExportRow:
    participant: str
    wish: str
    giver: str
    receiver: str
    receiver_wish: str

    def as_list(self) -> List[str]:
        return [self.participant, self.wish, self.giver, self.receiver, self.receiver_wish]


def participant_label(participant: Optional[Participant]) -> str:
    if participant is None:
        return ""
    if participant.telegram_username:
        return f"@{participant.telegram_username}"
    if participant.display_name:
        return participant.display_name
    return f"user-{participant.telegram_id}"


def export_rows(session) -> List[ExportRow]:
    """One row per current wish; unpaired wishes get empty pairing columns."""
    config = pool.read(session)
    edges = {
        assignment.giver_participant_id: assignment
        for assignment in repo.list_assignments(session, config.cycle)
    }

    rows = []
    for wish in repo.list_wishes(session):
        owner_label = participant_label(wish.participant)
        edge = edges.get(wish.participant_id)
        if edge is None:
            rows.append(ExportRow(owner_label, wish.text, "", "", ""))
            continue

        receiver_wish = repo.get_wish(session, edge.receiver_participant_id)
        rows.append(
            ExportRow(
                participant=owner_label,
                wish=wish.text,
                giver=owner_label,
                receiver=participant_label(edge.receiver),
                receiver_wish=receiver_wish.text if receiver_wish else "",
            )
        )
    return rows


def escape_field(value: Optional[str]) -> str:
    value = value or ""
    if any(char in value for char in SPECIAL_CHARS):
        return '"' + value.replace('"', '""') + '"'
    return value


def to_csv(rows: Iterable[ExportRow]) -> str:
    lines = [",".join(escape_field(name) for name in HEADER)]
    for row in rows:
        lines.append(",".join(escape_field(value) for value in row.as_list()))
    return "\n".join(lines) + "\n"


def export_csv(session) -> str:
    return to_csv(export_rows(session))
