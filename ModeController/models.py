from typing import Optional
from dataclasses import dataclass

from .enums import BlockAction

@dataclass
class BlockDecision:
    """Outcome of evaluating one navigation against focus mode"""
    action: BlockAction
    tab_id: int
    url: Optional[str] = None
    category: Optional[str] = None
    redirect_url: Optional[str] = None

    @property
    def blocked(self) -> bool:
        return self.action == BlockAction.REDIRECTED
