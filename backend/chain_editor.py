import copy

from backend import CHAIN_CATEGORIES, CHAINING_METHODS, settings
from backend.chaining import apply_target, chain_progress, select_target_step
from backend.errors import ValidationError
from backend.steps import StepSequence


class ChainEditor:
    """Helper for creating or editing a chain in memory.

    Nothing is written until :meth:`save` is called.  The editor works
    against an explicit :class:`~backend.chains.ChainStore` and user id.
    """

    def __init__(self, store, user_id: str, chain_id: str | None = None):
        """Create the editor and optionally load an existing chain."""

        self.store = store
        self.user_id = user_id
        self.chain_id: str | None = None
        self.title: str = ""
        self.description: str = ""
        self.category: str = settings.default_category()
        self.chaining_method: str = settings.default_chaining_method()
        self.is_active: bool = True
        self.steps = StepSequence()
        self._original: dict | None = None

        if chain_id:
            self.load(chain_id)
        else:
            self._original = self.to_dict()

    def load(self, chain_id: str) -> None:
        """Load ``chain_id`` from the store into memory."""

        chain = self.store.load_chain(chain_id)
        self.chain_id = chain["id"]
        self.title = chain["title"]
        self.description = chain.get("description", "")
        self.category = chain["category"]
        self.chaining_method = chain["chaining_method"]
        self.is_active = chain.get("is_active", True)
        self.steps = StepSequence(chain.get("steps", []))
        self._original = self.to_dict()

    # ------------------------------------------------------------------
    # Step helpers
    # ------------------------------------------------------------------
    def add_step(self, **fields) -> dict:
        return self.steps.add(**fields)

    def update_step(self, step_id: str, **updates) -> dict:
        return self.steps.update(step_id, **updates)

    def remove_step(self, step_id: str) -> None:
        self.steps.remove(step_id)

    def move_step(self, step_id: str, direction: str) -> None:
        self.steps.move(step_id, direction)

    def reorder_steps(self, step_ids: list[str]) -> None:
        self.steps.reorder(step_ids)

    def set_step_completed(self, step_id: str, completed: bool = True) -> dict | None:
        """Mark a step (in)complete and move the target to match.

        Returns the new target step, if any.
        """

        self.steps.update(step_id, is_completed=completed)
        return apply_target(self.steps.steps, self.chaining_method)

    def set_chaining_method(self, method: str) -> None:
        if method not in CHAINING_METHODS:
            raise ValueError(f"Unknown chaining method '{method}'")
        self.chaining_method = method
        apply_target(self.steps.steps, method)

    def target_step(self) -> dict | None:
        return select_target_step(self.steps.steps, self.chaining_method)

    def progress(self) -> dict:
        return chain_progress(self.steps.steps, self.chaining_method)

    def to_dict(self) -> dict:
        """Return the chain data as a dictionary."""

        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "chaining_method": self.chaining_method,
            "is_active": self.is_active,
            "steps": [
                {k: v for k, v in step.items() if k not in {"created_at", "updated_at"}}
                for step in copy.deepcopy(self.steps.steps)
            ],
        }

    # ------------------------------------------------------------------
    # Modification tracking helpers
    # ------------------------------------------------------------------
    def is_modified(self) -> bool:
        """Return ``True`` if the chain differs from the original state."""

        return self._original != self.to_dict()

    def mark_saved(self) -> None:
        """Record the current state as the saved state."""

        self._original = self.to_dict()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def validate(self) -> None:
        """Run checks to ensure the chain can be saved without writing it."""

        if not self.title.strip():
            raise ValidationError("Chain title cannot be empty")
        if self.category not in CHAIN_CATEGORIES:
            raise ValidationError(f"Unknown category '{self.category}'")
        if self.chaining_method not in CHAINING_METHODS:
            raise ValidationError(f"Unknown chaining method '{self.chaining_method}'")
        self.steps.validate()

    def save(self) -> str:
        """Validate and write the chain; return its id."""

        self.validate()
        data = {
            "title": self.title.strip(),
            "description": self.description,
            "category": self.category,
            "chaining_method": self.chaining_method,
            "is_active": self.is_active,
            "steps": self.steps.to_list(),
        }
        if self.chain_id is None:
            self.chain_id = self.store.create_chain(self.user_id, data)
        else:
            self.store.save_chain(self.chain_id, data)
        self.mark_saved()
        return self.chain_id
