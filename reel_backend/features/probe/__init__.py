from .service import ProbeData, ProbeGlossary, ProbeService

__all__ = ["ProbeData", "ProbeGlossary", "ProbeService"]
