from .users import User
from .jobs import Job, Proposal, Contract
from .messages import Message, Attachment

DOCUMENT_MODELS = [User, Job, Proposal, Contract, Message]

__all__ = [
    "User",
    "Job",
    "Proposal",
    "Contract",
    "Message",
    "Attachment",
    "DOCUMENT_MODELS",
]
