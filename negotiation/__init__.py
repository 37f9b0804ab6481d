from negotiation.engine import NegotiationRoadmapGenerator, generate_roadmap
from negotiation.errors import MissingContextError

__all__ = ["NegotiationRoadmapGenerator", "MissingContextError", "generate_roadmap"]
