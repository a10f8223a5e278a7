# Export writers module

from .csv_writer import (
    COST_COLUMNS,
    measurement_csv_row,
    write_measurements_to_csv,
    generate_csv_filename,
)

from .json_writer import (
    build_measurement_json,
    build_output_json,
    write_takeoff_to_json,
    load_takeoff_json,
    generate_json_filename,
)

__all__ = [
    # CSV
    "COST_COLUMNS",
    "measurement_csv_row",
    "write_measurements_to_csv",
    "generate_csv_filename",
    # JSON
    "build_measurement_json",
    "build_output_json",
    "write_takeoff_to_json",
    "load_takeoff_json",
    "generate_json_filename",
]
