from chatsim.core import (
    ActorContext,
    ActorFailed,
    ActorRef,
    ActorSystem,
    AdaptedRef,
    Behavior,
    Behaviors,
    CellRef,
    Mailbox,
)
from chatsim.chat import ChatEvent, ChatEventType, ChatMessage, CloseChat, NewChat
from chatsim.config import (
    ChatSimConfig,
    LoggingConfig,
    MailboxConfig,
    SimulationConfig,
    discover_config,
    load_config,
)
from chatsim.errors import (
    ChatSimError,
    ConfigError,
    DuplicateChatID,
    NoChatsAvailable,
    NoPeersAvailable,
)
from chatsim.reports import (
    Action,
    ActionFailed,
    ActionOutcome,
    ActionTaken,
    ChatJoined,
    ChatObserved,
    CloseAcknowledged,
    MessageReceived,
    PeerSeen,
    Report,
)
from chatsim.room import ChatRoom, derive_room_id
from chatsim.simulation import Simulation, run_simulation
from chatsim.user import (
    CloseChatRoom,
    CreateChat,
    GetSnapshot,
    PeerOnline,
    SendMessage,
    Tick,
    UserHandle,
    UserMsg,
    UserSnapshot,
    user,
)

__all__ = [
    # Core
    "ActorContext",
    "ActorFailed",
    "ActorRef",
    "ActorSystem",
    "AdaptedRef",
    "Behavior",
    "Behaviors",
    "CellRef",
    "Mailbox",
    # Rooms and chat events
    "ChatRoom",
    "derive_room_id",
    "ChatEvent",
    "ChatEventType",
    "ChatMessage",
    "CloseChat",
    "NewChat",
    # Users
    "user",
    "UserHandle",
    "UserMsg",
    "UserSnapshot",
    "PeerOnline",
    "Tick",
    "CreateChat",
    "SendMessage",
    "CloseChatRoom",
    "GetSnapshot",
    # Reports
    "Action",
    "ActionFailed",
    "ActionOutcome",
    "ActionTaken",
    "ChatJoined",
    "ChatObserved",
    "CloseAcknowledged",
    "MessageReceived",
    "PeerSeen",
    "Report",
    # Errors
    "ChatSimError",
    "ConfigError",
    "DuplicateChatID",
    "NoChatsAvailable",
    "NoPeersAvailable",
    # Config
    "ChatSimConfig",
    "LoggingConfig",
    "MailboxConfig",
    "SimulationConfig",
    "discover_config",
    "load_config",
    # Simulation
    "Simulation",
    "run_simulation",
]
