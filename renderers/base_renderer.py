from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from core.errors import InvalidInputError
from core.framebuffer import Framebuffer
from core.scene import Scene, RenderSettings


@dataclass
class RenderStats:
    """Coarse timings for diagnostics; never fed back into rendering."""
    bvh_build_seconds: float = 0.0
    render_seconds: float = 0.0
    tiles: int = 0
    workers: int = 0
    primary_rays: int = 0


class BaseRenderer(ABC):
    """Interface every renderer implements."""

    def __init__(self, name: str):
        self.name = name
        self.last_stats: Optional[RenderStats] = None

    @abstractmethod
    def render(self, scene: Scene, settings: RenderSettings) -> Framebuffer:
        """Renders the scene and returns the completed framebuffer."""
        pass

    @abstractmethod
    def get_capabilities(self) -> List[str]:
        """Features this renderer supports."""
        pass

    def get_name(self) -> str:
        return self.name

    def supports(self, feature: str) -> bool:
        return feature in self.get_capabilities()


class RendererFactory:
    _renderers = {}

    @classmethod
    def register(cls, name: str, renderer_class):
        cls._renderers[name] = renderer_class

    @classmethod
    def create(cls, name: str, **kwargs) -> BaseRenderer:
        if name not in cls._renderers:
            raise InvalidInputError(f"Unknown renderer: {name}")
        return cls._renderers[name](**kwargs)

    @classmethod
    def list_available(cls) -> List[str]:
        return list(cls._renderers.keys())
