import pytest

from iris_analysis.comparison.exec import (
    compare_groups,
    cross_tabulation,
    detailed_species_comparison,
    feature_importance,
    frequency_table,
)
from iris_analysis.confidence.exec import confidence_interval, z_value
from iris_analysis.descriptive.exec import count_value
from iris_analysis.errors import InvalidArgumentError
from iris_analysis.manipulation.exec import filter_records, group_by
from iris_analysis.outliers.exec import find_outliers


def test_compare_groups_petal_width(iris):
    groups = compare_groups(iris, "Species", "PetalWidthCm")
    assert [g.count for g in groups.values()] == [50, 50, 50]
    setosa, versicolor, virginica = (groups[s].mean for s in ("Iris-setosa", "Iris-versicolor", "Iris-virginica"))
    assert setosa < versicolor < virginica
    assert setosa == pytest.approx(0.244)
    assert virginica == pytest.approx(2.026)


def test_frequency_and_cross_tabulation(iris):
    assert frequency_table(iris, "Species") == {
        "Iris-setosa": 50,
        "Iris-versicolor": 50,
        "Iris-virginica": 50,
    }
    table = cross_tabulation(iris, "Species", "PetalWidthCm")
    assert sum(table["Iris-setosa"].values()) == 50
    assert table["Iris-setosa"]["0.2"] == 28


def test_iqr_outliers_on_sepal_width(iris):
    outliers = find_outliers(iris, "SepalWidthCm", "iqr")
    assert sorted(outliers["Id"]) == [16, 33, 34, 61]
    reasons = dict(zip(outliers["Id"], outliers["outlier_reason"]))
    assert reasons[61] == "below_q1"
    assert reasons[16] == "above_q3"


def test_zscore_outliers(iris):
    outliers = find_outliers(iris, "SepalWidthCm", "zscore")
    assert not outliers.empty
    assert (outliers["z_score"].abs() > 2).all()


def test_outliers_edge_cases(iris):
    constant = iris.assign(SepalWidthCm=3.0)
    assert find_outliers(constant, "SepalWidthCm", "zscore").empty
    assert find_outliers(constant, "SepalWidthCm", "iqr").empty
    with pytest.raises(InvalidArgumentError):
        find_outliers(iris, "SepalWidthCm", "mad")


def test_confidence_interval_widens_with_level(iris):
    widths = []
    for level in (0.90, 0.95, 0.99):
        ci = confidence_interval(iris, "SepalLengthCm", level)
        assert ci.lower_bound < ci.mean < ci.upper_bound
        assert ci.sample_size == 150
        widths.append(ci.upper_bound - ci.lower_bound)
    assert widths == sorted(widths)


def test_confidence_interval_rejects_unsupported_level(iris):
    assert z_value(0.95) == 1.96
    with pytest.raises(InvalidArgumentError):
        confidence_interval(iris, "SepalLengthCm", 0.8)
    assert confidence_interval(iris.head(1), "SepalLengthCm") is None


def test_feature_importance(iris):
    importance = feature_importance(iris)
    assert sum(importance.values()) == pytest.approx(100.0)
    assert max(importance, key=importance.get) == "PetalLengthCm"

    with pytest.raises(InvalidArgumentError, match="all three species"):
        feature_importance(filter_records(iris, species="setosa"))


def test_detailed_species_comparison(iris):
    comparison = detailed_species_comparison(iris)
    assert list(comparison) == ["Iris-setosa", "Iris-versicolor", "Iris-virginica"]
    setosa = comparison["Iris-setosa"]
    assert setosa["count"] == 50
    sepal = setosa["statistics"]["SepalLengthCm"]
    assert sepal["mean"] == pytest.approx(5.006)
    assert sepal["confidence_interval"]["lower_bound"] < sepal["mean"] < sepal["confidence_interval"]["upper_bound"]


def test_numeric_keys_agree_with_count_value(iris):
    frequencies = frequency_table(iris, "SepalLengthCm")
    assert "5" in frequencies and "5.0" not in frequencies
    assert frequencies["5"] == count_value(iris, "SepalLengthCm", 5.0) == 10
    assert frequencies["5.1"] == count_value(iris, "SepalLengthCm", "5.1")
    assert set(group_by(iris, "SepalLengthCm")) == set(frequencies)
    assert "1" in cross_tabulation(iris, "Species", "PetalWidthCm")["Iris-versicolor"]
