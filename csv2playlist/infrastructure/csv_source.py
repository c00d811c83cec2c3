import csv
import logging
from typing import List

from csv2playlist.domain.entities import TrackRecord
from csv2playlist.domain.errors import CsvFormatError

logger = logging.getLogger(__name__)

# Column headers of a DynamoDB table export
NAME_COLUMN = 'music (S)'
ID_COLUMN = 'song_id (S)'


def parse_csv_file(path: str, name_column: str = NAME_COLUMN, id_column: str = ID_COLUMN) -> List[TrackRecord]:
    """Read track records from a CSV export, in file order.

    Args:
        path: Path to the CSV file
        name_column: Header of the human readable track name column
        id_column: Header of the track id column

    Returns:
        List of track records

    Raises:
        CsvFormatError: The file cannot be read, lacks a column, or a row has no track id
    """
    records = []
    try:
        with open(path, 'r', encoding='utf-8-sig', newline='') as f:
            reader = csv.DictReader(f)
            missing = [c for c in (name_column, id_column) if c not in (reader.fieldnames or [])]
            if missing:
                raise CsvFormatError(path, f"missing column(s): {', '.join(missing)}")

            for row in reader:
                track_id = (row.get(id_column) or '').strip()
                if not track_id:
                    raise CsvFormatError(path, f"empty '{id_column}'", line=reader.line_num)
                records.append(TrackRecord(name=(row.get(name_column) or '').strip(), track_id=track_id))
    except OSError as e:
        raise CsvFormatError(path, f"cannot read file: {e}") from e
    except (csv.Error, UnicodeDecodeError) as e:
        raise CsvFormatError(path, f"malformed CSV: {e}") from e

    logger.info(f"Read {len(records)} tracks from {path}")
    return records
