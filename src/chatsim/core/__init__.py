from chatsim.core.behavior import Behavior, Behaviors
from chatsim.core.cell import ActorCell, ActorContext, ActorFailed
from chatsim.core.mailbox import Mailbox
from chatsim.core.ref import ActorRef, AdaptedRef, CellRef, ReplyRef
from chatsim.core.system import ActorSystem

__all__ = [
    "ActorCell",
    "ActorContext",
    "ActorFailed",
    "ActorRef",
    "ActorSystem",
    "AdaptedRef",
    "Behavior",
    "Behaviors",
    "CellRef",
    "Mailbox",
    "ReplyRef",
]
