"""
Unit tests for BigQuery extension verification
"""

import pytest
from google.cloud import bigquery

from stats_verifier.bigquery_verifier import (
    BigQueryVerifier,
    build_expectations,
    build_query,
    collect_results,
    compare_extensions,
)
from stats_verifier.config.bigquery_spec import BigQuerySpec
from stats_verifier.exceptions import (
    BigQueryConnectionError,
    ExtensionMismatchError,
    QueryResultError,
    VerificationError,
)

SPEC = BigQuerySpec("tectonic-test", "stats", "reports")


class TestBuildQuery:
    def test_query_targets_table_and_groups_extensions(self):
        query = build_query(SPEC)

        assert "`tectonic-test.stats.reports`" in query
        assert "UNNEST(extensions)" in query
        assert "AS extensions_name" in query
        assert "AS extensions_value" in query
        assert "clusterID = @cluster_id" in query
        assert "GROUP BY" in query

    def test_query_does_not_embed_cluster_id(self, test_config):
        assert test_config["cluster_id"] not in build_query(SPEC)


class TestBuildExpectations:
    def test_values_from_config_map(self, config_map_data, test_config):
        expected = build_expectations(config_map_data)

        assert expected == {
            "accountID": test_config["account_id"],
            "certificatesStrategy": None,
            "installerPlatform": "aws",
            "tectonicUpdaterEnabled": None,
        }

    def test_only_requested_extensions(self):
        expected = build_expectations({"a": "1", "b": "2"}, extensions=["b", "c"])

        assert expected == {"b": "2", "c": None}


class TestCollectResults:
    def test_collects_name_value_pairs(self, row):
        found = collect_results([row("accountID", "a1"), row("installerPlatform", "gcp")])

        assert found == {"accountID": "a1", "installerPlatform": "gcp"}

    def test_last_duplicate_wins(self, row):
        found = collect_results([row("accountID", "first"), row("accountID", "second")])

        assert found == {"accountID": "second"}

    def test_attribute_rows(self):
        class AttrRow:
            extensions_name = "accountID"
            extensions_value = "a1"

        assert collect_results([AttrRow()]) == {"accountID": "a1"}

    def test_non_string_name(self, row):
        with pytest.raises(QueryResultError, match="expected extension name to be a string"):
            collect_results([row(None, "a1")])

    def test_non_string_value(self, row):
        with pytest.raises(QueryResultError, match="expected extension value to be a string"):
            collect_results([row("accountID", 42)])

    def test_consumes_generator_once(self, row):
        rows = (r for r in [row("accountID", "a1")])

        assert collect_results(rows) == {"accountID": "a1"}
        assert list(rows) == []


class TestCompareExtensions:
    def test_all_match(self):
        expected = {"accountID": "a1", "certificatesStrategy": None}
        found = {"accountID": "a1", "certificatesStrategy": "anything", "extra": "x"}

        assert compare_extensions(expected, found) == {}

    def test_presence_only_missing(self):
        assert compare_extensions({"certificatesStrategy": None}, {}) == {
            "certificatesStrategy": 'did not find extension "certificatesStrategy"'
        }

    def test_expected_value_not_found(self):
        """A missing extension is compared as the empty string"""
        assert compare_extensions({"accountID": "a1"}, {}) == {
            "accountID": 'expected extension "accountID" to be "a1", got ""'
        }

    def test_expected_empty_value_matches_missing(self):
        assert compare_extensions({"accountID": ""}, {}) == {}

    def test_empty_config_value_with_missing_result_passes(self, config_map_data,
                                                           matching_rows):
        config_map_data["accountID"] = ""
        found = collect_results(
            r for r in matching_rows if r["extensions_name"] != "accountID"
        )

        assert compare_extensions(build_expectations(config_map_data), found) == {}

    def test_value_mismatch(self):
        assert compare_extensions({"accountID": "a1"}, {"accountID": "b2"}) == {
            "accountID": 'expected extension "accountID" to be "a1", got "b2"'
        }

    def test_preserves_expectation_order(self):
        expected = {"z": None, "a": None, "m": None}

        assert list(compare_extensions(expected, {})) == ["z", "a", "m"]


class TestBigQueryVerifier:
    def _verifier(self, connection, quiet_logger):
        return BigQueryVerifier(connection, SPEC, structured_logger=quiet_logger)

    def test_verify_success(self, make_bigquery_connection, quiet_logger,
                            config_map_data, matching_rows, test_config):
        connection = make_bigquery_connection([matching_rows])

        found = self._verifier(connection, quiet_logger).verify(config_map_data)

        assert found["accountID"] == test_config["account_id"]
        assert len(connection.queries) == 1

    def test_single_parameterized_query(self, make_bigquery_connection, quiet_logger,
                                        config_map_data, matching_rows, test_config):
        connection = make_bigquery_connection([matching_rows])

        self._verifier(connection, quiet_logger).verify(config_map_data)

        call = connection.queries[0]
        assert call["query"] == build_query(SPEC)
        assert isinstance(call["job_config"], bigquery.QueryJobConfig)
        params = call["job_config"].query_parameters
        assert len(params) == 1
        assert params[0].name == "cluster_id"
        assert params[0].value == test_config["cluster_id"]

    def test_account_mismatch_names_account(self, make_bigquery_connection, quiet_logger,
                                            config_map_data, matching_rows, row):
        rows = [r for r in matching_rows if r["extensions_name"] != "accountID"]
        rows.append(row("accountID", "someone-else"))
        connection = make_bigquery_connection([rows])

        with pytest.raises(ExtensionMismatchError) as exc_info:
            self._verifier(connection, quiet_logger).verify(config_map_data)

        error = exc_info.value
        assert error.extensions == ["accountID"]
        assert 'got "someone-else"' in error.mismatches[0]
        assert str(error).startswith("failed to find extensions in BigQuery results: ")

    def test_presence_only_extension_missing(self, make_bigquery_connection, quiet_logger,
                                             config_map_data, matching_rows):
        rows = [r for r in matching_rows if r["extensions_name"] != "certificatesStrategy"]
        connection = make_bigquery_connection([rows])

        with pytest.raises(ExtensionMismatchError) as exc_info:
            self._verifier(connection, quiet_logger).verify(config_map_data)

        assert exc_info.value.extensions == ["certificatesStrategy"]
        assert exc_info.value.mismatches == ['did not find extension "certificatesStrategy"']

    def test_all_failures_reported(self, make_bigquery_connection, quiet_logger,
                                   config_map_data):
        connection = make_bigquery_connection([[]])

        with pytest.raises(ExtensionMismatchError) as exc_info:
            self._verifier(connection, quiet_logger).verify(config_map_data)

        assert exc_info.value.extensions == [
            "accountID",
            "certificatesStrategy",
            "installerPlatform",
            "tectonicUpdaterEnabled",
        ]

    def test_missing_cluster_id(self, make_bigquery_connection, quiet_logger,
                                config_map_data):
        del config_map_data["clusterID"]
        connection = make_bigquery_connection([])

        with pytest.raises(VerificationError, match="failed to find cluster ID in ConfigMap"):
            self._verifier(connection, quiet_logger).verify(config_map_data)

        assert connection.queries == []

    def test_bad_row_shape(self, make_bigquery_connection, quiet_logger,
                           config_map_data, row):
        connection = make_bigquery_connection([[row("accountID", None)]])

        with pytest.raises(QueryResultError):
            self._verifier(connection, quiet_logger).verify(config_map_data)

    def test_query_error_propagates(self, make_bigquery_connection, quiet_logger,
                                    config_map_data):
        connection = make_bigquery_connection(
            [BigQueryConnectionError("failed to read query results: boom")]
        )

        with pytest.raises(BigQueryConnectionError):
            self._verifier(connection, quiet_logger).verify(config_map_data)
