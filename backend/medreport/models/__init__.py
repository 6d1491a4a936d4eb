from medreport.models.conversation import ConversationRecord, Turn
from medreport.models.user import User

__all__ = ["ConversationRecord", "Turn", "User"]
