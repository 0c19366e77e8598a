import json
import logging
import time
from pathlib import Path

from backend import STEP_STATUSES
from backend.errors import StepNotFoundError
from backend.utils import round_half_up


# Default location for persisting in-progress sessions ("save and continue
# later").  Two copies are written so a crash while writing one still
# leaves a readable file.
RECOVERY_DIR = Path(__file__).resolve().parents[1] / "data"
RECOVERY_BASE = RECOVERY_DIR / "session_recovery"


def session_duration_minutes(
    started_at: float, paused_seconds: float, ended_at: float
) -> int:
    """Return active session length in whole minutes, never negative."""

    raw = (ended_at - started_at - paused_seconds) / 60
    return max(0, round_half_up(raw))


def persisted_status(status: str) -> str:
    """Map a live recording status to the value stored with the session."""

    return "not-attempted" if status == "skipped" else status


class TrainingSessionRecorder:
    """In-memory record of one training run over a chain.

    Every step of the chain is tracked and starts as ``not-attempted``.
    Only steps in ``selected_step_ids`` may change status; the rest are
    shown but locked for this run.
    """

    def __init__(
        self,
        chain: dict,
        user_id: str,
        selected_step_ids=None,
        *,
        time_func=time.time,
        recovery_base: Path | None = None,
    ):
        self.chain_id = chain["id"]
        self.user_id = user_id
        self._time = time_func
        self.recovery_base = Path(recovery_base) if recovery_base else RECOVERY_BASE

        steps = sorted(chain.get("steps", []), key=lambda s: s.get("order", 0))
        self.step_ids: list[str] = [s["id"] for s in steps]
        if selected_step_ids is None:
            self.selected_step_ids = set(self.step_ids)
        else:
            self.selected_step_ids = set(selected_step_ids) & set(self.step_ids)
        self.step_results: dict[str, dict] = {
            sid: {"step_id": sid, "status": "not-attempted", "notes": ""}
            for sid in self.step_ids
        }
        self.session_notes = ""
        self.start_time = self._time()
        self.paused_seconds = 0.0
        self.paused_at: float | None = None
        self.submitted = False

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------
    def is_selected(self, step_id: str) -> bool:
        return step_id in self.selected_step_ids

    def record_step_status(self, step_id: str, status: str) -> bool:
        """Overwrite the status of ``step_id``.

        Returns ``False`` without changing anything when the step is not
        selected for this session.
        """

        if status not in STEP_STATUSES:
            raise ValueError(f"Unknown step status '{status}'")
        if not self.is_selected(step_id):
            return False
        self.step_results[step_id]["status"] = status
        return True

    def record_step_notes(self, step_id: str, text: str) -> None:
        if step_id not in self.step_results:
            raise StepNotFoundError(f"Step '{step_id}' is not part of this session")
        self.step_results[step_id]["notes"] = text

    def set_session_notes(self, text: str) -> None:
        self.session_notes = text

    def status_of(self, step_id: str) -> str:
        return self.step_results[step_id]["status"]

    # ------------------------------------------------------------------
    # Pausing
    # ------------------------------------------------------------------
    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None

    def pause(self) -> bool:
        if self.is_paused:
            return False
        self.paused_at = self._time()
        return True

    def resume(self) -> bool:
        if not self.is_paused:
            return False
        self.paused_seconds += max(0.0, self._time() - self.paused_at)
        self.paused_at = None
        return True

    def _total_paused(self, now: float) -> float:
        if self.paused_at is None:
            return self.paused_seconds
        return self.paused_seconds + max(0.0, now - self.paused_at)

    # ------------------------------------------------------------------
    # Finalizing
    # ------------------------------------------------------------------
    def finalize(
        self,
        session_start_time: float | None = None,
        paused_seconds: float | None = None,
        now: float | None = None,
    ) -> dict:
        """Return the session record ready to be handed to the store.

        Arguments default to the recorder's own bookkeeping.  Per-step
        ``time_spent`` is an even split of the total duration.
        """

        end = self._time() if now is None else now
        start = self.start_time if session_start_time is None else session_start_time
        paused = self._total_paused(end) if paused_seconds is None else paused_seconds
        duration = session_duration_minutes(start, paused, end)

        count = len(self.step_ids)
        share = round_half_up(duration * 60 / count) if count else 0
        results = []
        for sid in self.step_ids:
            entry = self.step_results[sid]
            status = persisted_status(entry["status"])
            results.append(
                {
                    "step_id": sid,
                    "status": status,
                    "attempts": 0 if status == "not-attempted" else 1,
                    "time_spent": share,
                    "notes": entry["notes"],
                }
            )
        return {
            "chain_id": self.chain_id,
            "user_id": self.user_id,
            "date": start,
            "step_results": results,
            "duration": duration,
            "notes": self.session_notes,
        }

    # --------------------------------------------------------------
    # Save and continue later
    # --------------------------------------------------------------
    def to_dict(self) -> dict:
        """Return a JSON-serialisable representation of the recorder."""

        return {
            "chain_id": self.chain_id,
            "user_id": self.user_id,
            "step_ids": self.step_ids,
            "selected_step_ids": sorted(self.selected_step_ids),
            "step_results": self.step_results,
            "session_notes": self.session_notes,
            "start_time": self.start_time,
            "paused_seconds": self.paused_seconds,
            "paused_at": self.paused_at,
            "recovery_base": str(self.recovery_base),
        }

    @classmethod
    def from_dict(cls, data: dict, *, time_func=time.time) -> "TrainingSessionRecorder":
        """Reconstruct a recorder from :meth:`to_dict` output."""

        obj = cls.__new__(cls)
        obj._time = time_func
        obj.chain_id = data["chain_id"]
        obj.user_id = data["user_id"]
        obj.step_ids = list(data["step_ids"])
        obj.selected_step_ids = set(data.get("selected_step_ids", obj.step_ids))
        obj.step_results = {
            sid: dict(entry) for sid, entry in data["step_results"].items()
        }
        obj.session_notes = data.get("session_notes", "")
        obj.start_time = data["start_time"]
        obj.paused_seconds = data.get("paused_seconds", 0.0)
        obj.paused_at = data.get("paused_at")
        obj.recovery_base = Path(data.get("recovery_base") or RECOVERY_BASE)
        obj.submitted = False
        return obj

    export_state = to_dict

    @classmethod
    def from_state(cls, state: dict, **kwargs) -> "TrainingSessionRecorder":
        return cls.from_dict(state, **kwargs)

    @staticmethod
    def _recovery_files(base: Path) -> tuple[Path, Path]:
        return (
            base.with_name(base.name + "_1.json"),
            base.with_name(base.name + "_2.json"),
        )

    def save_for_later(self) -> None:
        """Persist the in-progress state to the recovery files.

        Saving opens a pause, so time spent away from the session is not
        counted once it is resumed.
        """

        self.pause()
        payload = json.dumps(self.to_dict())
        self.recovery_base.parent.mkdir(parents=True, exist_ok=True)
        for path in self._recovery_files(self.recovery_base):
            path.write_text(payload)
        logging.info("Saved in-progress session for chain %s", self.chain_id)

    @classmethod
    def load_recovery_state(cls, base: Path | None = None) -> dict | None:
        """Return the saved state dict, trying the backup file second."""

        for path in cls._recovery_files(Path(base) if base else RECOVERY_BASE):
            try:
                text = path.read_text().strip()
            except FileNotFoundError:
                continue
            if not text:
                continue
            try:
                return json.loads(text)
            except ValueError:
                logging.warning("Discarding unreadable recovery file %s", path)
        return None

    @classmethod
    def load_from_recovery(cls, base: Path | None = None, **kwargs) -> "TrainingSessionRecorder | None":
        state = cls.load_recovery_state(base)
        return cls.from_dict(state, **kwargs) if state else None

    @classmethod
    def clear_recovery_state(cls, base: Path | None = None) -> None:
        """Remove any existing recovery files."""

        for path in cls._recovery_files(Path(base) if base else RECOVERY_BASE):
            try:
                path.unlink()
            except FileNotFoundError:
                pass
