"""
Codec and saliency backends injected into the engine.
"""

from tachyon.backends.codec import ImageCodecBackend, PillowCodecBackend
from tachyon.backends.saliency import SalientCropService, SmartCropService
