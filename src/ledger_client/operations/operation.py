"""
Operation values, handlers and per-invocation scope.

An ``Operation`` names a capability (its ``key``) and carries its input. It
has no behavior; the registry maps the key to the handler that implements it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar, Union, TYPE_CHECKING

from pydantic import BaseModel, Field

from ..programs.program import Program
from ..rpc.types import Commitment, ConfirmOptions
from ..runtime.disposable import AbortSignal, CancelListener, DisposableScope
from ..signers.signer import Signer

if TYPE_CHECKING:
    from ..client import LedgerClient

I = TypeVar("I")
O = TypeVar("O")


@dataclass(frozen=True)
class Operation(Generic[I, O]):
    """
    A typed request to run one capability.

    ``O`` is the handler's output type and only serves type checkers.
    """
    key: str
    input: I = None


class OperationConstructor(Generic[I, O]):
    """Builds ``Operation`` values for one key."""

    def __init__(self, key: str):
        self.key = key

    def __call__(self, input: I = None) -> Operation[I, O]:
        return Operation(self.key, input)

    def __repr__(self) -> str:
        return f"OperationConstructor('{self.key}')"


def use_operation(key: str) -> OperationConstructor:
    """
    Declare an operation key.

    Example:
        ```python
        transfer_sol_operation = use_operation("TransferSolOperation")
        operation = transfer_sol_operation({"to": address, "lamports": 1000})
        ```
    """
    return OperationConstructor(key)


class OperationOptions(BaseModel):
    """
    Options shared by every operation invocation.
    """
    payer: Optional[Signer] = Field(
        default=None, description="Fee payer; defaults to the RPC default fee payer"
    )
    commitment: Optional[Commitment] = Field(default=None, description="Read commitment")
    confirm_options: Optional[ConfirmOptions] = Field(
        default=None, alias="confirmOptions", description="Send and confirm options"
    )
    programs: List[Program] = Field(
        default_factory=list, description="Programs overriding the registered ones"
    )
    signal: Optional[AbortSignal] = Field(default=None, description="Cancellation signal")
    timeout: Optional[float] = Field(default=None, gt=0, description="Cancel after this many seconds")

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}


class OperationScope:
    """
    Cancellation scope plus resolved options, handed to each handler.

    Attributes:
        payer: Resolved fee payer
        commitment: Read commitment, if any
        confirm_options: Send and confirm options
        programs: Program overrides
    """

    def __init__(
        self,
        scope: DisposableScope,
        payer: Signer,
        commitment: Optional[Commitment] = None,
        confirm_options: Optional[ConfirmOptions] = None,
        programs: Optional[List[Program]] = None,
    ):
        self._scope = scope
        self.signal = scope.signal
        self.payer = payer
        self.commitment = commitment
        self.confirm_options = confirm_options or ConfirmOptions()
        self.programs = list(programs or [])

    def is_canceled(self) -> bool:
        return self._scope.is_canceled()

    def get_cancelation_error(self) -> Optional[BaseException]:
        return self._scope.get_cancelation_error()

    def throw_if_canceled(self) -> None:
        self._scope.throw_if_canceled()

    def on_cancel(self, listener: CancelListener) -> OperationScope:
        self._scope.on_cancel(listener)
        return self


OperationHandler = Callable[[Operation, "LedgerClient", OperationScope], Union[Any, Awaitable[Any]]]


__all__ = [
    "Operation",
    "OperationConstructor",
    "OperationHandler",
    "OperationOptions",
    "OperationScope",
    "use_operation",
]
