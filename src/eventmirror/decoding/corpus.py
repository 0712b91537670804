"""The packaged ABI corpus, in registration order.

Current contracts come first, then the deprecated event sets, then the resale
marketplace and the credit handler. Each ABI is tagged with the generation its
events belong to.
"""

from __future__ import annotations

import json
from importlib import resources

from eventmirror.core.models import Generation

from .abi import AbiJson
from .registry import AbiSource

CORPUS_FILES: tuple[tuple[str, Generation], ...] = (
    ("erc721", Generation.CLASSIC),
    ("minter", Generation.CLASSIC),
    ("factory", Generation.CLASSIC),
    ("diamond_factory", Generation.DIAMOND),
    ("diamond_marketplace", Generation.DIAMOND),
    ("classic_deprecated", Generation.CLASSIC),
    ("diamond_deprecated", Generation.DIAMOND),
    ("resale_marketplace", Generation.CLASSIC),
    ("credit_handler", Generation.DIAMOND),
)


def load_packaged_abi(name: str) -> AbiJson:
    """Load `eventmirror/abis/<name>.json`."""
    text = resources.files("eventmirror.abis").joinpath(f"{name}.json").read_text(encoding="utf-8")
    return json.loads(text)


def default_corpus() -> list[AbiSource]:
    return [
        AbiSource(name=name, abi=load_packaged_abi(name), generation=generation)
        for name, generation in CORPUS_FILES
    ]
