"""
cached_generation.py — Minimal gencache example.

Demonstrates one shared service bundle serving repeated recipe requests:
the first request pays for the generation call, later ones hit the cache.

Usage:
    export GENCACHE_STORE_BACKEND=file
    python examples/cached_generation.py
"""

from gencache import build_services
from gencache.usage import GENERATION_CALLS


async def generate_recipe() -> dict:
    return {"title": "Chaos Omelette", "instructions": ["Crack egg", "Panic"]}


async def main() -> None:
    services = build_services()
    await services.meter.load()

    for ingredients in (["Egg", "flour"], ["flour", "EGG"]):
        recipe = await services.gateway.call(
            "recipe", ingredients, generate_recipe, metric=GENERATION_CALLS
        )
        print(recipe["title"])

    print(services.meter.get_usage())
    for suggestion in services.meter.suggestions():
        print("tip:", suggestion)
    await services.aclose()


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
