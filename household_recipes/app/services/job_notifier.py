"""Turn polled smart list job summaries into one-shot user notifications."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Optional

from household_recipes.app.schemas.smart_list import SmartListJobOut

NotificationType = Literal["success", "failure", "progress"]

MISSING_LIST_ERROR = "Smart list was missing after completion."


@dataclass
class Notification:
    job_id: str
    type: NotificationType
    message: str
    smart_list_id: Optional[str] = None
    error: Optional[str] = None


class JobStatusNotifier:
    """Remembers the last status seen per job so each transition is announced once."""

    def __init__(self) -> None:
        self._seen: Dict[str, Dict[str, str]] = {}

    def seen(self, workspace_id: str) -> Dict[str, str]:
        return dict(self._seen.get(workspace_id, {}))

    def poll(self, workspace_id: str, jobs: Iterable[SmartListJobOut]) -> List[Notification]:
        seen = self._seen.setdefault(workspace_id, {})
        notifications: List[Notification] = []
        for job in jobs:
            previous = seen.get(job.id)
            if previous == job.status:
                continue
            name = job.shopping_list_name or "your shopping list"
            if job.status in ("QUEUED", "RUNNING") and previous is None:
                notifications.append(
                    Notification(job_id=job.id, type="progress", message=f"Generating Smart List for {name}…")
                )
            elif job.status == "SUCCEEDED":
                if job.smart_list_id:
                    notifications.append(
                        Notification(
                            job_id=job.id,
                            type="success",
                            message=f"Smart List for {name} has been successfully generated.",
                            smart_list_id=job.smart_list_id,
                        )
                    )
                else:
                    notifications.append(
                        Notification(
                            job_id=job.id,
                            type="failure",
                            message=f"Smart List generation failed for {name}.",
                            error=MISSING_LIST_ERROR,
                        )
                    )
            elif job.status == "FAILED":
                notifications.append(
                    Notification(
                        job_id=job.id,
                        type="failure",
                        message=f"Smart List generation failed for {name}.",
                        error=job.error,
                    )
                )
            seen[job.id] = job.status
        return notifications
