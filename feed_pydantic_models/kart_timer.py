"""
Pydantic models for the kart-timer live screen feed.
These models represent the raw data structure returned by the timing page.
"""
from pydantic import BaseModel, ConfigDict
from typing import Any, List


class RawHeadInfo(BaseModel):
    """
    Head block of the live screen.
    The feed sends the session number and the track length as strings,
    occasionally as bare numbers.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True)

    number: str
    len: str = ""


class RawFeed(BaseModel):
    """
    Whole live screen payload.
    Each result row is a heterogeneous positional array; rows are
    validated one by one when parsed, so a malformed row cannot reject the
    whole payload.
    """
    headinfo: RawHeadInfo
    results: List[Any] = []
