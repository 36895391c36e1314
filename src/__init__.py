"""Quiz generation AI provider layer.

Routes text and image generation requests to OpenAI or a self-hosted
SwarmUI instance through one registry.

Use explicit imports: `from src.providers import build_registry`
"""
