from tachyon.ops.transforms import steps
from tachyon.ops.transforms.registry import TRANSFORMS, get_transform, register
