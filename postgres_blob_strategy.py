from data_generation import generate_points
from point_codec import encode_points
from strategy import BLOB_TABLE, IngestionStrategy


class PackedBlobStrategy(IngestionStrategy):
    """Packs size points into one bytea row, one transaction per row"""

    mode = "BinaryBlob"
    table_name = BLOB_TABLE
    insert_query = (
        f"INSERT INTO {BLOB_TABLE} (group_size, attr_count, payload) VALUES (%s, %s, %s)"
    )
    reports_payload = True

    def count_query(self) -> str:
        # One row holds group_size points
        return f"SELECT COALESCE(SUM(group_size), 0) FROM {self.table_name}"

    def write_partition(self, start: int, count: int, attribute_count: int) -> int:
        payload = encode_points(list(generate_points(start, count, attribute_count)))

        with self.conn.transaction():
            with self.conn.cursor() as cur:
                cur.execute(self.insert_query, (count, attribute_count, payload))
        return len(payload)
