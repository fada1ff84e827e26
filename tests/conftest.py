"""Pytest fixtures for NosGen tests."""

import os
import tempfile

import cv2
import numpy as np
import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def default_config():
    """Create default NosGen configuration."""
    from nosgen.config import NosGenConfig
    return NosGenConfig()


def make_frame(name, width=10, height=10, color=(255, 0, 0, 255), points=None):
    """Frame with a solid RGBA image."""
    from nosgen.models import FrameData

    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[:, :] = color
    return FrameData(
        id=f"id-{name}",
        name=name,
        width=width,
        height=height,
        image=image,
        points=points or [],
    )


def make_point(point_id, x, y, is_keyframe=True, name=None):
    from nosgen.models import FramePoint
    return FramePoint(id=point_id, name=name or point_id, x=x, y=y, is_keyframe=is_keyframe)


@pytest.fixture
def frame_factory():
    """Factory for in-memory frames."""
    return make_frame


@pytest.fixture
def point_factory():
    """Factory for frame points."""
    return make_point


@pytest.fixture
def orbit_frames():
    """
    24 frames of 100x100 with one point "hand".

    Keyframes sit on a circle of radius 20 around (50, 50) at frames
    0, 6, 12 and 18; every other frame holds an unplaced point.
    """
    frames = []
    keyframes = {0: (70, 50), 6: (50, 70), 12: (30, 50), 18: (50, 30)}
    for index in range(24):
        x, y = keyframes.get(index, (0, 0))
        point = make_point("hand", x, y, is_keyframe=index in keyframes)
        frames.append(make_frame(f"walk_{index:02d}.png", 100, 100, points=[point]))
    return frames


def write_png(path, width, height, color=(0, 0, 255, 255)):
    """Write a solid BGRA PNG and return its path."""
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[:, :] = color
    cv2.imwrite(path, image)
    return path


@pytest.fixture
def png_writer():
    """Writer for solid-color PNG files."""
    return write_png


@pytest.fixture
def frame_files(temp_dir):
    """Four 16x16 frame PNGs on disk."""
    paths = []
    for index in range(4):
        path = os.path.join(temp_dir, f"run_{index}.png")
        paths.append(write_png(path, 16, 16, color=(index * 40, 0, 255, 255)))
    return paths
