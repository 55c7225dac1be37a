"""Easing curves used by timeline animate segments."""

POWER2_INOUT = "power2.inOut"
POWER3_OUT = "power3.out"
POWER4_OUT = "power4.out"

EASINGS = (POWER2_INOUT, POWER3_OUT, POWER4_OUT)
DEFAULT_EASING = POWER3_OUT


def power2_inout(t):
    if t < 0.5:
        return 2 * t * t
    return 1 - (-2 * t + 2) ** 2 / 2


def power3_out(t):
    return 1 - (1 - t) ** 3


def power4_out(t):
    return 1 - (1 - t) ** 4


_CURVES = {
    POWER2_INOUT: power2_inout,
    POWER3_OUT: power3_out,
    POWER4_OUT: power4_out,
}


def apply_easing(t, easing_id):
    """Map linear progress t in [0, 1] through the named curve.

    Unknown ids use power3.out.
    """
    t = max(0.0, min(1.0, t))
    return _CURVES.get(easing_id, _CURVES[DEFAULT_EASING])(t)
