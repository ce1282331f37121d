"""
Generic list management for one entity.

``CrudController`` owns the displayed list, the open form and the last error for a
single resource. Every successful write is followed by a full reload, so the list
shown is always the last successful server fetch and never a local patch.
"""
from typing import Any, Callable, Dict, List, Mapping, Optional

from .schemas import EntitySchema
from .utils.exceptions import AuthenticationError, BusinessRuleError, WardrobeError
from .utils.logging import get_logger
from .validation import join_errors

log = get_logger(__name__)

IDLE = "idle"
LOADING = "loading"
SUCCESS = "success"
ERROR = "error"


class CrudController:
    def __init__(self, client, schema: EntitySchema, snapshots=None,
                 confirm: Optional[Callable[[str], bool]] = None) -> None:
        """
        :param client: ``ResourceClient``-like object for the schema's resource.
        :param snapshots: Optional ``get()``/``put(records)`` store holding the last good list.
        :param confirm: Asked before every delete; a falsy answer cancels it.
        """
        self.client = client
        self.schema = schema
        self.snapshots = snapshots
        self.confirm = confirm

        self.state = IDLE
        self.error: Optional[str] = None
        self.errors: List[str] = []
        self.records: List[Dict[str, Any]] = (snapshots.get() if snapshots else None) or []
        self.subject: Optional[Dict[str, Any]] = None
        self.form_open = False

        self._generation = 0
        self._disposed = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self) -> bool:
        if self._disposed:
            return False
        self._generation += 1
        generation = self._generation
        self.state = LOADING

        try:
            records = self.client.list()
        except AuthenticationError:
            raise
        except WardrobeError as e:
            if self._stale(generation):
                return False
            log.warning("Loading %s failed: %s", self.schema.plural, e)
            self.state = ERROR
            self.error = f"Failed to load {self.schema.plural}"
            return False

        if self._stale(generation):
            log.debug("Discarding superseded %s result", self.schema.plural)
            return False

        self.records = list(records)
        if self.snapshots is not None:
            self.snapshots.put(self.records)
        self.state = SUCCESS
        self.error = None
        return True

    def _stale(self, generation: int) -> bool:
        return self._disposed or generation != self._generation

    def dispose(self) -> None:
        self._disposed = True

    # ------------------------------------------------------------------
    # Form
    # ------------------------------------------------------------------
    def open_create(self) -> None:
        self.subject = None
        self.form_open = True
        self.errors = []
        self.error = None

    def open_edit(self, record: Dict[str, Any]) -> None:
        self.subject = record
        self.form_open = True
        self.errors = []
        self.error = None

    def close_form(self) -> None:
        self.subject = None
        self.form_open = False

    @property
    def editing(self) -> bool:
        return self.subject is not None

    def form_defaults(self) -> Dict[str, Any]:
        return self.schema.form_defaults(self.subject)

    def submit(self, values: Mapping[str, Any]) -> bool:
        errors = self.schema.validate(values, editing=self.editing)
        if errors:
            self.errors = errors
            self.error = join_errors(errors)
            return False

        payload = self.schema.to_payload(values, self.subject)
        try:
            if self.editing:
                self.client.update(self.subject["id"], payload)
            else:
                self.client.create(payload)
        except AuthenticationError:
            raise
        except BusinessRuleError as e:
            self.errors = [e.message]
            self.error = e.message
            return False
        except WardrobeError as e:
            log.warning("Saving %s failed: %s", self.schema.singular, e)
            self.error = f"Failed to save {self.schema.singular}"
            self.errors = [self.error]
            return False

        self.errors = []
        self.error = None
        self.close_form()
        self.load()
        return True

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------
    def remove(self, record_id: Any) -> bool:
        message = f"Are you sure you want to delete this {self.schema.singular}?"
        if self.confirm is None or not self.confirm(message):
            return False
        try:
            self.client.delete(record_id)
        except AuthenticationError:
            raise
        except WardrobeError as e:
            log.warning("Deleting %s %s failed: %s", self.schema.singular, record_id, e)
            self.error = f"Failed to delete {self.schema.singular}"
            return False
        self.error = None
        self.load()
        return True
