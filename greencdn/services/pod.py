"""POD Power: apparel colour variations and mockups built on the generative image provider."""

import asyncio
import random
from collections.abc import Coroutine
from typing import Any, Protocol

from greencdn.services.generative import GeneratedImage, GenerativeProviderError

APPAREL_TYPES = ("T-shirt", "Hoodie", "Sweater")

VARIATION_COLORS = (
    "Black", "White", "Sport Grey", "Sand", "Forest Green", "Light Pink", "Navy",
    "Military Green", "Maroon", "Red", "Royal Blue", "Ash Grey", "Light Blue",
    "Charcoal", "Dark Heather", "Purple", "Orange",
)

FLAT_LAY_PROPS = (
    "blue denim jeans",
    "a small succulent plant in a white pot",
    "a beige knit scarf",
    "white canvas sneakers",
    "a wide-brimmed fedora hat",
    "a classic wrist watch",
    "a ceramic coffee mug",
    "dried pampas grass",
    "a wooden photo frame",
)

_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp"}


class ImageGenerator(Protocol):
    async def generate(self, image: bytes, mime_type: str, prompt: str) -> tuple[str, bytes]: ...


def _suffix(apparel_type: str | None) -> str:
    if not apparel_type:
        return ""
    return "_" + "_".join(apparel_type.lower().split())


def _ext(mime_type: str) -> str:
    return _EXTENSIONS.get(mime_type, "png")


def variation_prompt(color: str) -> str:
    return (
        f"Change the colour of the apparel to '{color}'. Keep the printed design, "
        "the text and the background exactly as in the original image."
    )


def model_mockup_prompt(apparel: str) -> str:
    return (
        f"Photorealistic mockup of two models wearing the same '{apparel}', one facing "
        "forward and one showing the back. The printed design must stay sharp and legible."
    )


def flat_lay_prompt(apparel: str, props: str) -> str:
    return (
        f"Flat-lay photograph of the '{apparel}' spread out on a neutral background with a "
        f"second one folded beside it. Place these props around it: {props}. "
        "Do not cover or alter the printed design."
    )


async def _run_all(jobs: list[Coroutine[Any, Any, GeneratedImage]]) -> list[GeneratedImage]:
    """
    Run provider jobs concurrently; results keep job order.

    The first failure cancels the remaining jobs and is re-raised as is.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(job) for job in jobs]
    except ExceptionGroup as eg:
        provider_errors = eg.subgroup(GenerativeProviderError)
        if provider_errors is None:
            raise
        raise provider_errors.exceptions[0] from eg
    return [task.result() for task in tasks]


async def generate_variations(
    provider: ImageGenerator,
    image: bytes,
    mime_type: str,
    colors: list[str],
) -> list[GeneratedImage]:
    """One generated image per colour, named '<Colour>.<ext>'. Requests run concurrently; one failure cancels the rest."""

    async def one(color: str) -> GeneratedImage:
        mime, data = await provider.generate(image, mime_type, variation_prompt(color))
        return GeneratedImage(name=f"{color}.{_ext(mime)}", mime_type=mime, data=data)

    return await _run_all([one(c) for c in colors])


async def remake_mockups(
    provider: ImageGenerator,
    image: bytes,
    mime_type: str,
    apparel_types: list[str],
    rng: random.Random | None = None,
) -> list[GeneratedImage]:
    """A model shot and a flat-lay per apparel type; a single generic pair when none are given."""
    rng = rng or random.Random()

    async def one(kind: str, apparel_type: str | None, prompt: str) -> GeneratedImage:
        mime, data = await provider.generate(image, mime_type, prompt)
        return GeneratedImage(
            name=f"{kind}{_suffix(apparel_type)}_mockup.{_ext(mime)}",
            mime_type=mime,
            data=data,
        )

    jobs = []
    for apparel_type in apparel_types or [None]:
        apparel = apparel_type or "apparel"
        props = ", ".join(rng.sample(FLAT_LAY_PROPS, 3))
        jobs.append(one("model", apparel_type, model_mockup_prompt(apparel)))
        jobs.append(one("flatlay", apparel_type, flat_lay_prompt(apparel, props)))
    return await _run_all(jobs)
