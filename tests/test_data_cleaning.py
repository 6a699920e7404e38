import pandas as pd
import pytest

from shooting_report.data_cleaning import (
    GEOGRAPHIC_COLUMNS,
    RACE_NOT_RECORDED,
    AuditTrail,
    drop_geographic_columns,
    normalize_murder_flag,
    normalize_race,
    normalize_types,
    parse_occurrence_time,
    run_pipeline,
)
from shooting_report.errors import FieldParseError, ReportError, SchemaMismatchError

from conftest import make_raw


# ── Column pruning ────────────────────────────────────────────────────────────

def test_drop_geographic_columns_keeps_every_row(raw_df):
    pruned = drop_geographic_columns(raw_df)
    assert len(pruned) == len(raw_df)
    assert not set(GEOGRAPHIC_COLUMNS) & set(pruned.columns)
    assert "BORO" in pruned.columns


def test_drop_geographic_columns_requires_all_five(raw_df):
    with pytest.raises(SchemaMismatchError) as excinfo:
        drop_geographic_columns(raw_df.drop(columns=["Latitude", "Lon_Lat"]))
    assert excinfo.value.missing == ["Latitude", "Lon_Lat"]


# ── Type normalization ────────────────────────────────────────────────────────

def test_normalize_types_renames_and_converts(raw_df):
    df = normalize_types(drop_geographic_columns(raw_df))

    assert "Location_Description" in df.columns and "LOC_OF_OCCUR_DESC" not in df.columns
    assert "Is_Murder" in df.columns and "STATISTICAL_MURDER_FLAG" not in df.columns
    assert isinstance(df["Location_Description"].dtype, pd.CategoricalDtype)
    assert df["OCCUR_DATE"].iloc[0] == pd.Timestamp("2020-01-05")
    assert df["OCCUR_TIME"].iloc[0] == pd.Timedelta(hours=23, minutes=30)
    assert len(df) == len(raw_df)


def test_normalize_types_does_not_mutate_input(raw_df):
    pruned = drop_geographic_columns(raw_df)
    normalize_types(pruned)
    assert pruned["OCCUR_TIME"].iloc[0] == "23:30:00"


def test_parse_occurrence_time_is_time_since_midnight():
    parsed = parse_occurrence_time(pd.Series(["00:00:00", "23:59:59"]))
    assert parsed.tolist() == [pd.Timedelta(0), pd.Timedelta(hours=23, minutes=59, seconds=59)]


def test_murder_flag_restricted_to_true_false():
    flag = normalize_murder_flag(pd.Series(["true", "false", "unknown", "TRUE", " False ", None]))
    assert list(flag.cat.categories) == ["true", "false"]
    assert flag.iloc[0] == "true"
    assert flag.iloc[1] == "false"
    assert pd.isna(flag.iloc[2])
    assert flag.iloc[3] == "true"
    assert flag.iloc[4] == "false"
    assert pd.isna(flag.iloc[5])


def test_murder_flag_accepts_boolean_literals():
    flag = normalize_murder_flag(pd.Series([True, False]))
    assert flag.tolist() == ["true", "false"]


def test_race_missing_values_become_sentinel():
    race = normalize_race(pd.Series(["BLACK", "", "  ", None, "(null)", "UNKNOWN"]))
    assert race.tolist() == ["BLACK", RACE_NOT_RECORDED, RACE_NOT_RECORDED,
                             RACE_NOT_RECORDED, RACE_NOT_RECORDED, "UNKNOWN"]


def test_normalize_types_missing_column(raw_df):
    pruned = drop_geographic_columns(raw_df).drop(columns=["VIC_RACE"])
    with pytest.raises(SchemaMismatchError, match="VIC_RACE"):
        normalize_types(pruned)


# ── Parse-failure policy ──────────────────────────────────────────────────────

def test_malformed_time_aborts_by_default():
    raw = make_raw(OCCUR_TIME=["23:30:00", "25:99", "12:15:30", "noon"])
    with pytest.raises(FieldParseError) as excinfo:
        normalize_types(drop_geographic_columns(raw))
    assert excinfo.value.column == "OCCUR_TIME"
    assert excinfo.value.count == 2
    assert excinfo.value.examples == ["25:99", "noon"]


def test_malformed_date_coerced_when_configured():
    raw = make_raw(OCCUR_DATE=["01/05/2020", "2021-02-14", "07/04/2019", "11/30/2022"])
    audit = AuditTrail(total_rows=len(raw))
    df = normalize_types(drop_geographic_columns(raw, audit), audit, on_parse_error="coerce")

    assert len(df) == 4
    assert pd.isna(df["OCCUR_DATE"].iloc[1])
    parse_step = next(s for s in audit.steps if s["step"] == "Parse: OCCUR_DATE")
    assert parse_step["rows_affected"] == 1


def test_unknown_parse_policy_rejected(raw_df):
    with pytest.raises(ValueError, match="on_parse_error"):
        normalize_types(drop_geographic_columns(raw_df), on_parse_error="skip")


# ── Audit trail & pipeline ────────────────────────────────────────────────────

def test_audit_trail_guards_row_count(raw_df):
    audit = AuditTrail(total_rows=len(raw_df))
    with pytest.raises(ReportError, match="row count changed"):
        audit.check_rows("Dedup", raw_df.iloc[:2])


def test_run_pipeline_conserves_rows_and_records_steps(raw_df):
    df, audit = run_pipeline(raw_df)

    assert len(df) == len(raw_df)
    frame = audit.to_frame()
    assert frame["step"].tolist()[0] == "Drop geographic"
    race_step = frame.set_index("step").loc["Race sentinel"]
    # Two empty PERP_RACE cells and one empty VIC_RACE cell
    assert race_step["rows_affected"] == 3
