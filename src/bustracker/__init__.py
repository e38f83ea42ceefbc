#!/usr/bin/env python3
"""
Bustracker - smoothing and animation of vehicle paths.

This package cleans and smooths GTFS or GPX shapes, derives corner-aware
speed profiles, and drives a tick-based controller that moves a vehicle
along the path. Results can be replayed on an interactive map.
"""
import importlib.metadata

__version__ = importlib.metadata.version("bustracker")

# Import main classes for public API
from .geometry import GeoPoint, haversine_distance
from .smoothing import chaikin_smoothing, filter_close_points, preprocess_shape_points
from .corners import SpeedProfile, speed_profile
from .motion import Frame, MotionController, MotionState
from .shape import Shape

__all__ = [
    "GeoPoint",
    "haversine_distance",
    "filter_close_points",
    "chaikin_smoothing",
    "preprocess_shape_points",
    "SpeedProfile",
    "speed_profile",
    "Frame",
    "MotionController",
    "MotionState",
    "Shape",
]
