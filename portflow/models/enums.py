import enum


class BookingStatus(str, enum.Enum):
    NEW = "New"
    QUOTE_SENT = "Quote Sent"
    BOOKED = "Booked"
    IN_TRANSIT = "In Transit"
    COMPLETED = "Completed"


class ServiceType(str, enum.Enum):
    SEA = "Sea"
    AIR = "Air"
    ROAD = "Road"


class Direction(str, enum.Enum):
    EXPORT = "Export"
    IMPORT = "Import"


class MessageRole(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ConversationStatus(str, enum.Enum):
    GATHERING = "GATHERING"
    SUBMITTING = "SUBMITTING"
    SUBMITTED = "SUBMITTED"


class Screen(str, enum.Enum):
    LANDING = "landing"
    LOGIN = "login"
    DASHBOARD = "dashboard"
