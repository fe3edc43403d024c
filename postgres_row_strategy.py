from data_generation import generate_points
from strategy import POINTS_TABLE, IngestionStrategy


class PointByPointStrategy(IngestionStrategy):
    """One INSERT per point, size points per transaction"""

    mode = "PointByPoint"
    insert_query = f"INSERT INTO {POINTS_TABLE} (x, y, z, attrs) VALUES (%s, %s, %s, %s)"

    def write_partition(self, start: int, count: int, attribute_count: int) -> int:
        with self.conn.transaction():
            with self.conn.cursor() as cur:
                for point in generate_points(start, count, attribute_count):
                    cur.execute(
                        self.insert_query,
                        (point.x, point.y, point.z, list(point.attrs)),
                    )
        return 0
