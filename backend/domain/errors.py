"""
Domain errors for the poster pipeline.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer should answer with. None of them are retried internally.
"""


class PosterError(Exception):
    """Base class for all pipeline errors surfaced to the caller."""
    code: str = "poster_error"
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error_code": self.code, "message": self.message}


class MissingInputError(PosterError):
    """Required image bytes were absent from the request."""
    code = "missing_input"
    status_code = 400


class UnknownSizeError(PosterError):
    code = "unknown_size"
    status_code = 400

    def __init__(self, size_label: str):
        super().__init__(f"Unknown print size: {size_label!r}")
        self.size_label = size_label


class UnknownBleedCodeError(PosterError):
    code = "unknown_bleed_code"
    status_code = 400

    def __init__(self, bleed_code: str):
        super().__init__(f"Unknown bleed code: {bleed_code!r}")
        self.bleed_code = bleed_code


class InvalidImageError(PosterError):
    """Image bytes could not be decoded."""
    code = "invalid_image"
    status_code = 422


class InvalidOverlayError(InvalidImageError):
    """Line-art raster is undecodable or has degenerate dimensions."""
    code = "invalid_overlay"


class AssetNotFoundError(PosterError):
    code = "asset_not_found"
    status_code = 400

    def __init__(self, selector: str):
        super().__init__(f"Background asset not found: {selector}")
        self.selector = selector


class EncodingError(PosterError):
    """Final raster could not be serialized."""
    code = "encoding_error"
    status_code = 500


class RemoteFetchError(PosterError):
    code = "remote_fetch_failed"
    status_code = 502


class TransformNotConfiguredError(PosterError):
    code = "transform_not_configured"
    status_code = 500


class TransformResponseError(PosterError):
    """Image-generation service answered without a usable image."""
    code = "transform_bad_response"
    status_code = 502
