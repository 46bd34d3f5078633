"""Client-side auto-pagination for the fetch operation."""

import logging
from typing import Any, Dict, List

from explorium_node.core.models import FetchRequest, PaginationCursor
from explorium_node.etl.builders import fetch_descriptor
from explorium_node.etl.merge import response_rows

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def fetch_all_pages(
    client: Any,
    request: FetchRequest,
    *,
    max_page_size: int = MAX_PAGE_SIZE,
) -> List[Dict[str, Any]]:
    """Request consecutive pages until ``request.size`` rows are collected or a page comes back empty.

    The API can over-return on the last page, so each page is truncated to what is
    still missing before it is kept. With ``extract_data`` every row becomes its own
    output record, otherwise each (truncated) page envelope is one record.
    """
    page_size = min(max_page_size, request.size)
    cursor = PaginationCursor(current_page=request.page, fetched_count=0, target_count=request.size)
    output: List[Dict[str, Any]] = []

    while not cursor.done:
        response = client.send(fetch_descriptor(request, page=cursor.current_page, page_size=page_size))
        rows = response_rows(response)
        total_results = response.get("total_results") if isinstance(response, dict) else None
        if isinstance(total_results, int) and total_results < cursor.target_count:
            logger.info("Clamping fetch target from %d to total_results=%d", cursor.target_count, total_results)
            cursor.target_count = total_results

        if not rows:
            logger.info("Page %d returned no rows; stopping", cursor.current_page)
            break
        if cursor.done:
            break

        if len(rows) > cursor.remaining:
            logger.debug("Truncating page %d from %d to %d rows", cursor.current_page, len(rows), cursor.remaining)
            rows = rows[:cursor.remaining]

        cursor.fetched_count += len(rows)
        if request.extract_data:
            output.extend(rows)
        else:
            output.append({**response, "data": rows})
        logger.info(
            "Fetched page %d: kept=%d total=%d/%d",
            cursor.current_page,
            len(rows),
            cursor.fetched_count,
            cursor.target_count,
        )
        cursor.current_page += 1

    return output
