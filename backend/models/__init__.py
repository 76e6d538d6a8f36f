# Import all models to ensure they are registered with SQLAlchemy

from .base import Base
from .ai_function.trace import AIFunctionTrace
