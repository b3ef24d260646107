"""
Execution host for the tokenledger system.

The host owns the backing store and routes initialize, command and query calls
into the ledger. Every mutating call runs against a write buffer: the ledger's
writes are flushed to the backing store as one batch only when the call
succeeds, and dropped when it raises.
"""
import logging
import time
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from tokenledger.core.config import LedgerConfig
from tokenledger.core.ledger import Ledger, ContractError, InvariantViolation
from tokenledger.core.ledger.ledger import PREFIX_CONFIG, KEY_CONSTANTS
from tokenledger.core.models import InitializeMsg, ExecuteMsg, QueryMsg, Response, MessageParseError
from tokenledger.core.notifications import NotificationManager, NotificationType
from tokenledger.core.storage import Storage, BufferedStorage, ReadonlyPrefixedStorage

# Set up logging
logger = logging.getLogger(__name__)

# Response attributes that name an account touched by a command
ACCOUNT_ATTRIBUTES = ("sender", "owner", "spender", "account", "recipient")


class AlreadyInitialized(ContractError):
    """Exception raised when initialize is called on an initialized ledger."""

    def __init__(self):
        super().__init__("Ledger is already initialized")


class LedgerHost:
    """
    Serialized entry point into a ledger over one backing store.

    Calls are expected to arrive one at a time; the host performs no locking
    of its own.
    """

    def __init__(
        self,
        storage: Storage,
        api,
        notification_manager: Optional[NotificationManager] = None,
        ledger_config: Optional[LedgerConfig] = None,
    ):
        """Initialize the host.

        Args:
            storage: Backing store that receives committed writes
            api: Address validator passed to the ledger
            notification_manager: Optional notification manager for call outcomes
            ledger_config: Optional configuration for metadata validation
        """
        self.storage = storage
        self.ledger = Ledger(api, ledger_config)
        self.notification_manager = notification_manager

    def is_initialized(self) -> bool:
        config_store = ReadonlyPrefixedStorage(self.storage, PREFIX_CONFIG)
        return config_store.get(KEY_CONSTANTS) is not None

    def instantiate(self, sender: str, msg: Union[InitializeMsg, Dict[str, Any]]) -> Response:
        """Run initialization as a single atomic unit.

        Raises:
            AlreadyInitialized: If metadata has already been written
            ContractError: If the ledger rejects the seed data or metadata
            MessageParseError: If a raw message cannot be decoded
        """
        if isinstance(msg, dict):
            msg = self._parse_initialize(msg)
        if self.is_initialized():
            raise AlreadyInitialized()

        response = self._run("initialize", sender, lambda store: self.ledger.instantiate(store, sender, msg))
        self._notify(NotificationType.LEDGER_INITIALIZED, {
            "sender": sender,
            "action": "initialize",
            "attributes": response.to_dict(),
            "accounts": _unique([row.address for row in msg.initial_balances]),
        })
        return response

    def execute(self, sender: str, msg: Union[ExecuteMsg, Dict[str, Any]]) -> Response:
        """Apply one command on behalf of the authenticated ``sender``.

        Raises:
            ContractError: If the command is rejected; no write is committed
            InvariantViolation: If persisted state is corrupted; no write is committed
            MessageParseError: If a raw message cannot be decoded
        """
        if isinstance(msg, dict):
            msg = ExecuteMsg.from_dict(msg)

        try:
            response = self._run(msg.tag, sender, lambda store: self.ledger.execute(store, sender, msg))
        except (ContractError, InvariantViolation) as e:
            self._notify(NotificationType.COMMAND_REJECTED, {
                "sender": sender,
                "action": msg.tag,
                "reason": str(e),
                "accounts": [sender],
            })
            raise

        attributes = response.to_dict()
        self._notify(NotificationType.COMMAND_APPLIED, {
            "sender": sender,
            "action": msg.tag,
            "attributes": attributes,
            "accounts": _unique([attributes[k] for k in ACCOUNT_ATTRIBUTES if k in attributes]),
        })
        return response

    def query(self, msg: Union[QueryMsg, Dict[str, Any]]):
        """Answer a read-only query against committed state."""
        if isinstance(msg, dict):
            msg = QueryMsg.from_dict(msg)
        return self.ledger.query(self.storage, msg)

    def holders(self) -> Dict[str, int]:
        """Committed balances of every account that has a balance record."""
        return dict(self.ledger.iter_balances(self.storage))

    def _run(self, action: str, sender: str, call) -> Response:
        buffer = BufferedStorage(self.storage)
        start_time = time.time()
        try:
            response = call(buffer)
        except ContractError as e:
            dropped = buffer.discard()
            logger.warning(f"Rejected {action} from {sender}: {str(e)} ({dropped} writes discarded)")
            raise
        except InvariantViolation as e:
            dropped = buffer.discard()
            logger.critical(f"Invariant violation during {action} from {sender}: {str(e)} "
                            f"({dropped} writes discarded)")
            raise

        written = buffer.commit()
        processing_time = int((time.time() - start_time) * 1000)
        logger.info(f"Applied {action} from {sender}: {written} writes in {processing_time}ms")
        return response

    def _parse_initialize(self, data: Dict[str, Any]) -> InitializeMsg:
        try:
            return InitializeMsg.model_validate(data)
        except ValidationError as e:
            raise MessageParseError(f"Invalid initialize message: {e}") from e

    def _notify(self, notification_type: NotificationType, data: Dict[str, Any]) -> None:
        if self.notification_manager:
            self.notification_manager.notify(notification_type, data)


def _unique(addresses: List[str]) -> List[str]:
    return list(dict.fromkeys(addresses))
