"""Pure request-shaping steps: prompt presets, URL rewrite, output extraction."""

from roomdesigner.pipeline.image_urls import to_raw_url
from roomdesigner.pipeline.output import extract_output_url
from roomdesigner.pipeline.prompt_presets import ResolvedPrompt, resolve_prompt

__all__ = [
    "ResolvedPrompt",
    "extract_output_url",
    "resolve_prompt",
    "to_raw_url",
]
