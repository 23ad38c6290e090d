"""SDLTM to TMX conversion.

A conversion is one sequential pass::

    Init -> OpenSource -> BuildHeader -> WriteHeader -> StreamBody
         -> CloseBody -> CloseSource -> Done

Any step may end in ``Failed`` instead.  Row N+1 is not read before row N
has been written.  On failure the partially written TMX is left on disk;
callers decide whether to keep or delete it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from lxml import etree

from sdltm2tmx import config
from sdltm2tmx.errors import ConfigurationError, ConversionError, SegmentError
from sdltm2tmx.models import ConversionResult, ConversionState, ToolIdentity, TranslationUnitRow
from sdltm2tmx.sdltm import SDLTMDatabase
from sdltm2tmx.segment import decode_segment
from sdltm2tmx.tmx_io import TMXStreamWriter, build_header, build_tu

logger = logging.getLogger(__name__)


class SDLTMConverter:
    """Converts one SDLTM file into one TMX file.

    The instance owns both the database connection and the output file
    for the duration of :meth:`run`; it is not meant to be shared or run
    twice concurrently.
    """

    def __init__(
        self,
        sdltm_path: str | Path,
        tmx_path: str | Path,
        *,
        product_name: str | None = None,
        version: str | None = None,
    ) -> None:
        self.sdltm_path = Path(sdltm_path)
        self.tmx_path = Path(tmx_path)
        self.product_name = product_name
        self.version = version
        self.state = ConversionState.INIT

    def run(self) -> ConversionResult:
        """Run the conversion and report the unit count or the reason it failed."""
        self.state = ConversionState.INIT
        try:
            tool = config.get_tool_identity(self.product_name, self.version)
        except ConfigurationError as e:
            return self._fail(str(e))

        db = SDLTMDatabase(self.sdltm_path)
        writer = TMXStreamWriter(self.tmx_path)
        try:
            # Never merge into a previous run's output
            self.tmx_path.unlink(missing_ok=True)
            self.state = ConversionState.OPEN_SOURCE
            db.open()
            count = self._convert(db, writer, tool)
            self.state = ConversionState.CLOSE_SOURCE
            db.close()
        except ConversionError as e:
            return self._fail(str(e))
        except OSError as e:
            return self._fail(f"Cannot write {self.tmx_path}: {e}")
        finally:
            writer.close()
            db.close()

        self.state = ConversionState.DONE
        logger.info("Wrote %d translation units to %s", count, self.tmx_path)
        return ConversionResult.success(count)

    def _convert(self, db: SDLTMDatabase, writer: TMXStreamWriter, tool: ToolIdentity) -> int:
        self.state = ConversionState.BUILD_HEADER
        header = build_header(db.metadata(), db.picklist_values(), tool)

        self.state = ConversionState.WRITE_HEADER
        writer.open()
        writer.write_header(header)
        logger.info("Header written (srclang=%s)", header.get("srclang"))

        self.state = ConversionState.STREAM_BODY
        for row in db.iter_units():
            writer.write_tu(self._unit(row))
            logger.debug("Translation unit %s written", row.id)

        self.state = ConversionState.CLOSE_BODY
        writer.write_footer()
        return writer.count

    @staticmethod
    def _unit(row: TranslationUnitRow) -> etree._Element:
        """Decode both segments of *row* and build its ``<tu>``.

        Nothing is written for the row unless both sides convert cleanly.
        """
        side = "source"
        try:
            source = decode_segment(row.source_segment)
            side = "target"
            target = decode_segment(row.target_segment)
            side = None
            return build_tu(row, source, target)
        except SegmentError as e:
            e.row_id = row.id
            e.side = e.side or side
            raise

    def _fail(self, reason: str) -> ConversionResult:
        self.state = ConversionState.FAILED
        logger.error("Conversion of %s failed: %s", self.sdltm_path, reason)
        return ConversionResult.failure(reason)


def convert(
    sdltm_path: str | Path,
    tmx_path: str | Path,
    *,
    product_name: str | None = None,
    version: str | None = None,
) -> ConversionResult:
    """Convert *sdltm_path* to a TMX 1.4 document at *tmx_path*."""
    converter = SDLTMConverter(
        sdltm_path, tmx_path, product_name=product_name, version=version
    )
    return converter.run()
