from __future__ import annotations


class GlyphmarchError(ValueError):
    """Base class for configuration errors raised by glyphmarch."""


class SceneConfigError(GlyphmarchError):
    """Invalid primitive parameters or scene composition."""


class CameraConfigError(GlyphmarchError):
    """Invalid camera snapshot."""


class RenderConfigError(GlyphmarchError):
    """Invalid marcher, lighting or renderer settings."""
