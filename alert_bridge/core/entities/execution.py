from pydantic import BaseModel
from typing import Optional


class ExecutionResult(BaseModel):
    """
    Outcome of the decision gate. executed=False is a normal result.
    """
    executed: bool
    tradeId: Optional[str] = None
    message: str
    timestamp: int  # epoch ms
