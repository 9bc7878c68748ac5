"""Decoders for legacy cross-stitch pattern and palette formats."""

from .errors import (  # noqa: F401
    OxsError,
    StructuralError,
    UnrecognizedVariantError,
    XspError,
)
from .stream import ByteReader  # noqa: F401
from .stitches import (  # noqa: F401
    CurvedStitch,
    FullStitch,
    FullStitchKind,
    Joints,
    LineStitch,
    LineStitchKind,
    NodeStitch,
    NodeStitchKind,
    PartStitch,
    PartStitchDirection,
    PartStitchKind,
    SpecialStitch,
    SpecialStitchModel,
)
from .pattern import (  # noqa: F401
    Fabric,
    PaletteItem,
    Pattern,
    PatternInfo,
)
from .cipher import (  # noqa: F401
    CipherState,
    decode_chunk,
    expand_runs,
    read_stitches_data,
    reproduce_decoding_values,
)
from .cells import (  # noqa: F401
    SmallStitchBuffer,
    decode_stitch_grid,
    map_stitches_data,
    read_small_stitch_buffers,
)
from .joints import decode_joints  # noqa: F401
from .models import decode_special_stitch_models  # noqa: F401
from .xsd import VALID_SIGNATURE, parse_xsd_bytes, parse_xsd_pattern  # noqa: F401
from .brands import brand_name, thread_brands  # noqa: F401
from .palettes import (  # noqa: F401
    ThreadColor,
    parse_pmaker_palette,
    parse_ursa_palette,
    parse_xspro_palette,
)
from .oxs import (  # noqa: F401
    OxsPaletteItem,
    OxsPattern,
    OxsProperties,
    parse_oxs,
    parse_oxs_pattern,
    pattern_from_xsd,
    save_oxs_pattern,
    to_oxs,
)
