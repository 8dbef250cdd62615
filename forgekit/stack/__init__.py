"""Project tech stack detection."""

from forgekit.stack.detection import Framework, TechStack, detect_tech_stack

__all__ = ["Framework", "TechStack", "detect_tech_stack"]
