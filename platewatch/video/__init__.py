"""
Platewatch Video Processing

Frame admission, the detection pipeline, frame sources and static media
analysis.
"""

from platewatch.video.frame_sampler import FrameThrottle
from platewatch.video.pipeline import DetectionPipeline
from platewatch.video.file_analysis import analyze_image, analyze_video
from platewatch.video.frame_source import VideoSource

__all__ = [
    'FrameThrottle',
    'DetectionPipeline',
    'analyze_image',
    'analyze_video',
    'VideoSource',
]
