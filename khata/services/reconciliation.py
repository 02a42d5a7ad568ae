import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from loguru import logger

from khata.core.config import ReconciliationConfig
from khata.models.schemas import ExtractedMark, ReconciliationReport, RosterEntry
from khata.services.decoder import decode_candidates
from khata.services.dedup import merge_duplicates
from khata.services.matcher import get_summary_stats, match_extracted_students
from khata.utils.exceptions import KhataError

OCRCall = Callable[[Any], Union[Any, Awaitable[Any]]]

NOTHING_EXTRACTED = "No marks could be read from the images. Please take clearer photos."


class KhataReconciler:
    """Turns a batch of register photos into one reconciled set of marks.

    Photos go through ``ocr_call`` one at a time (``max_concurrency`` raises
    that bound). A photo that fails only costs its own rows: the failure is
    recorded against its 1-based index and the run carries on.
    """

    def __init__(self, ocr_call: OCRCall, config: Optional[ReconciliationConfig] = None):
        self.ocr_call = ocr_call
        self.config = config or ReconciliationConfig()

    async def reconcile(
        self,
        images: Sequence[Any],
        roster: Optional[Sequence[RosterEntry]] = None
    ) -> ReconciliationReport:
        start_time = time.time()

        outcomes = await self._extract_all(images)

        extracted: List[ExtractedMark] = []
        processing_errors: List[str] = []
        for marks, error in outcomes:
            extracted.extend(marks)
            if error:
                processing_errors.append(error)

        if not extracted:
            logger.warning(f"Nothing extracted from {len(images)} image(s)")
            return ReconciliationReport(
                success=False,
                merged=[],
                processing_errors=processing_errors,
                total_images_processed=len(images),
                total_students_extracted=0,
                error=NOTHING_EXTRACTED,
            )

        deduplicated = merge_duplicates(extracted)

        merged: list = deduplicated.merged
        summary = None
        if roster is not None:
            merged = match_extracted_students(deduplicated.merged, roster, self.config)
            summary = get_summary_stats(merged)

        logger.info(
            f"Reconciled {len(extracted)} row(s) from {len(images)} image(s) into "
            f"{len(merged)} student(s) in {time.time() - start_time:.2f}s"
        )

        return ReconciliationReport(
            success=True,
            merged=merged,
            warnings=deduplicated.warnings,
            processing_errors=processing_errors,
            total_images_processed=len(images),
            total_students_extracted=len(merged),
            summary=summary,
        )

    async def _extract_all(self, images: Sequence[Any]) -> List[Tuple[List[ExtractedMark], Optional[str]]]:
        if self.config.max_concurrency <= 1:
            return [await self._extract_one(index, image) for index, image in enumerate(images)]

        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def bounded(index: int, image: Any):
            async with semaphore:
                return await self._extract_one(index, image)

        # gather keeps input order, so attribution stays per image
        return list(await asyncio.gather(*(bounded(i, img) for i, img in enumerate(images))))

    async def _extract_one(self, index: int, image: Any) -> Tuple[List[ExtractedMark], Optional[str]]:
        label = f"Image {index + 1}"

        try:
            raw = await self._call_ocr(image)
            marks = decode_candidates(raw)
        except asyncio.TimeoutError:
            logger.warning(f"{label}: OCR timed out after {self.config.ocr_timeout_seconds}s")
            return [], f"{label}: OCR timed out after {self.config.ocr_timeout_seconds:g} seconds"
        except KhataError as e:
            logger.warning(f"{label}: {e.error_code} {e.message}")
            return [], f"{label}: {e.message}"
        except Exception as e:
            logger.error(f"{label}: OCR failed: {e}")
            return [], f"{label}: {str(e) or 'processing failed'}"

        logger.info(f"{label}: {len(marks)} row(s) extracted")
        if not marks:
            return [], f"{label}: no valid rows found"
        return marks, None

    async def _call_ocr(self, image: Any) -> Any:
        result = self.ocr_call(image)
        if not inspect.isawaitable(result):
            return result

        timeout = self.config.ocr_timeout_seconds
        if timeout:
            return await asyncio.wait_for(result, timeout=timeout)
        return await result


async def reconcile(
    images: Sequence[Any],
    roster: Optional[Sequence[RosterEntry]],
    ocr_call: OCRCall,
    config: Optional[ReconciliationConfig] = None
) -> ReconciliationReport:
    return await KhataReconciler(ocr_call, config).reconcile(images, roster)
