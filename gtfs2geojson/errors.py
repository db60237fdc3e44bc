from typing import Optional


class Gtfs2GeojsonError(Exception):
    """
    Generic exception for the gtfs2geojson package
    """


class OutOfOrderError(Gtfs2GeojsonError):
    """
    Raised when shapes.txt is read as ordered but a shape_id run repeats or
    shape_pt_sequence does not strictly increase within a shape
    """

    def __init__(self, shape_id: str, shape_pt_sequence: Optional[str] = None):
        if shape_pt_sequence is None:
            message = f"shape_id out of order: {shape_id}"
        else:
            message = (
                f"shape_pt_sequence out of order: "
                f"shape_id={shape_id} shape_pt_sequence={shape_pt_sequence}"
            )
        super().__init__(message)
        self.shape_id = shape_id
        self.shape_pt_sequence = shape_pt_sequence


class ArchiveError(Gtfs2GeojsonError):
    """
    The GTFS zip archive is missing, unreadable, or lacks a requested table
    """


class UpstreamError(Gtfs2GeojsonError):
    """
    The upstream realtime feed answered with a non-success status
    """

    def __init__(self, status_code: int, url: str):
        super().__init__(f"Upstream feed {url} returned HTTP {status_code}")
        self.status_code = status_code
        self.url = url
