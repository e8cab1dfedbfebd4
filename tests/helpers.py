"""Builders shared by the test modules"""

from typing import List

from clip_creator.content_generation.content_models import VideoSegment


def script_payload(count: int, transition: str = "fade") -> dict:
    """Raw model output with `count` well-formed segments"""
    return {
        "segments": [
            {
                "id": i,
                "text": f"Segment number {i} narration",
                "duration": 5,
                "description": f"city skyline {i}",
                "transition": transition,
            }
            for i in range(1, count + 1)
        ]
    }


def make_segments(transitions: List[str]) -> List[VideoSegment]:
    return [
        VideoSegment(
            id=i,
            text=f"Segment number {i} narration",
            description=f"city skyline {i}",
            transition=transition,
        )
        for i, transition in enumerate(transitions, start=1)
    ]
