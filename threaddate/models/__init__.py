from .user import User
from .profile import Profile
from .session import AuthSession
from .one_time_token import OneTimeToken
from .brand import Brand
from .clothing_item import ClothingItem
from .tag import Tag
from .tag_evidence import TagEvidence
from .vote import Vote
