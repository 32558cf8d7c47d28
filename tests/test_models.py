import logging

import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import ElasticNet, Lasso, LinearRegression, Ridge

from statflow.components.models import fit_model
from statflow.components.models.builders import ElasticNetBuilder, LogRegBuilder
from statflow.contracts.model_configs import (
    ElasticNetConfig,
    KNNConfig,
    KNNRegressorConfig,
    LDAConfig,
    LinearRegConfig,
    LogRegConfig,
    NaiveBayesConfig,
    NullModelConfig,
    QDAConfig,
)
from statflow.contracts.roles import Roles
from statflow.contracts.tuning_configs import tune
from statflow.core.dataset import Dataset
from statflow.errors import (
    ConfigurationError,
    InsufficientDataError,
    ModelTargetTypeMismatchError,
    NonNumericPredictorError,
    UnsupportedOperationError,
    UnsupportedPredictionModeError,
)
from statflow.registries.models import list_model_algos, make_model_builder
from statflow.reporting.tables import l1_norm_by_penalty, regularization_path
from statflow.use_cases.workflow import Workflow


class TestBuilders:
    def test_every_algo_registered(self):
        assert list_model_algos() == sorted(
            ["linreg", "elastic_net", "knn_reg", "logreg", "lda", "qda", "naive_bayes", "knn", "null"]
        )

    def test_elastic_net_penalty_mapping(self):
        est = ElasticNetBuilder(ElasticNetConfig(penalty=10.0, mixture=0.5)).make_estimator(100)
        assert isinstance(est, ElasticNet)
        assert est.alpha == pytest.approx(10.0 * 1.5 / 200.0)
        assert est.l1_ratio == pytest.approx(1.0 / 3.0)

    def test_elastic_net_special_cases(self):
        assert isinstance(ElasticNetBuilder(ElasticNetConfig(penalty=0.0)).make_estimator(50), LinearRegression)
        ridge = ElasticNetBuilder(ElasticNetConfig(penalty=2.0, mixture=0.0)).make_estimator(50)
        assert isinstance(ridge, Ridge) and ridge.alpha == 2.0
        lasso = ElasticNetBuilder(ElasticNetConfig(penalty=4.0, mixture=1.0)).make_estimator(50)
        assert isinstance(lasso, Lasso) and lasso.alpha == pytest.approx(0.04)

    def test_logistic_penalty_mapping(self):
        unpenalised = LogRegBuilder(LogRegConfig()).make_estimator(10)
        assert np.isinf(unpenalised.C) and unpenalised.l1_ratio == 0.0
        ridge = LogRegBuilder(LogRegConfig(penalty=0.5, mixture=0.0)).make_estimator(10)
        assert ridge.C == pytest.approx(2.0) and ridge.l1_ratio == 0.0 and ridge.solver == "lbfgs"
        l1 = LogRegBuilder(LogRegConfig(penalty=0.5, mixture=1.0)).make_estimator(10)
        assert l1.C == pytest.approx(2.0) and l1.l1_ratio == 1.0 and l1.solver == "saga"
        en = LogRegBuilder(LogRegConfig(penalty=0.5, mixture=0.3)).make_estimator(10)
        assert en.l1_ratio == pytest.approx(0.3)

    @pytest.mark.parametrize("penalty, mixture", [(0.0, 0.0), (0.1, 0.0), (0.1, 1.0), (0.1, 0.5)])
    def test_logistic_fit_uses_current_estimator_api(self, two_class_data, class_roles, caplog, penalty, mixture):
        wf = Workflow(roles=class_roles, model=LogRegConfig(penalty=penalty, mixture=mixture), seed=1)
        with caplog.at_level(logging.WARNING, logger="statflow"):
            wf.fit(two_class_data)
        messages = " ".join(r.getMessage() for r in caplog.records)
        assert "deprecated" not in messages
        assert "Inconsistent values" not in messages

    def test_null_builder_follows_mode(self):
        reg = make_model_builder(NullModelConfig(mode="regression")).make_estimator(5)
        clf = make_model_builder(NullModelConfig(mode="classification")).make_estimator(5)
        assert type(reg).__name__ == "DummyRegressor"
        assert type(clf).__name__ == "DummyClassifier"

    def test_config_ranges_validated(self):
        with pytest.raises(ValueError):
            ElasticNetConfig(mixture=1.5)
        with pytest.raises(ValueError):
            ElasticNetConfig(penalty=-1.0)
        with pytest.raises(ValueError):
            KNNConfig(neighbors=0)


class TestLinearRegression:
    def test_recovers_coefficients(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=LinearRegConfig()).fit(linear_data)
        coefs = fitted.model.coefficients(include_intercept=True)
        assert coefs["(Intercept)"] == pytest.approx(1.0, abs=0.2)
        assert coefs["x1"] == pytest.approx(2.0, abs=0.2)
        assert coefs["x2"] == pytest.approx(-1.5, abs=0.2)

    def test_tidy_and_glance(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=LinearRegConfig()).fit(linear_data)
        tidy = fitted.tidy()
        assert tidy.columns.tolist() == ["term", "estimate", "std_error", "statistic", "p_value"]
        assert tidy["term"].tolist() == ["(Intercept)", "x1", "x2"]
        assert (tidy["p_value"] < 1e-6).all()
        glance = fitted.glance().iloc[0]
        assert glance["r_squared"] > 0.9
        assert glance["df_residual"] == 197

    def test_prediction_interval_wider_than_confidence_interval(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=LinearRegConfig()).fit(linear_data)
        new = linear_data.take(range(10))
        conf = fitted.predict(new, "conf_int")
        pred = fitted.predict(new, "pred_int")
        np.testing.assert_allclose(conf[".pred"], pred[".pred"])
        np.testing.assert_allclose(conf[".pred"], fitted.predict(new)[".pred"])
        conf_w = conf[".pred_upper"] - conf[".pred_lower"]
        pred_w = pred[".pred_upper"] - pred[".pred_lower"]
        assert (pred_w > conf_w).all()
        assert (conf[".pred_lower"] < conf[".pred"]).all()

    def test_wider_level_gives_wider_interval(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=LinearRegConfig()).fit(linear_data)
        narrow = fitted.predict(linear_data, "pred_int", level=0.8)
        wide = fitted.predict(linear_data, "pred_int", level=0.99)
        assert ((wide[".pred_upper"] - wide[".pred_lower"]) > (narrow[".pred_upper"] - narrow[".pred_lower"])).all()

    def test_class_mode_unsupported(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=LinearRegConfig()).fit(linear_data)
        with pytest.raises(UnsupportedPredictionModeError):
            fitted.predict(linear_data, "class")

    def test_nominal_outcome_rejected(self, two_class_data, class_roles):
        with pytest.raises(ModelTargetTypeMismatchError):
            Workflow(roles=class_roles, model=LinearRegConfig()).fit(two_class_data)

    def test_too_few_rows(self, linear_data, linear_roles):
        with pytest.raises(InsufficientDataError):
            Workflow(roles=linear_roles, model=LinearRegConfig()).fit(linear_data.take([0, 1, 2]))

    def test_unencoded_nominal_predictor(self, mixed_data):
        roles = Roles(outcome="y", predictors=("x", "grp"))
        with pytest.raises(NonNumericPredictorError):
            Workflow(roles=roles, model=LinearRegConfig()).fit(mixed_data)

    def test_pending_tuning_marker(self, linear_data, linear_roles):
        with pytest.raises(ConfigurationError):
            fit_model(ElasticNetConfig(penalty=tune()), linear_data, ["x1", "x2"], "y")


class TestElasticNet:
    def test_lasso_zeroes_noise_predictor(self):
        from statflow.extras.datasets import simulate_linear

        data = simulate_linear(n=200, coefs=(2.0, 0.0), noise=0.5, seed=7)
        roles = Roles(outcome="y", predictors=("x1", "x2"))
        fitted = Workflow(roles=roles, model=ElasticNetConfig(penalty=100.0, mixture=1.0)).fit(data)
        coefs = fitted.model.coefficients()
        assert coefs["x2"] == 0.0
        assert coefs["x1"] != 0.0
        assert fitted.glance().iloc[0]["n_nonzero"] == 1

    def test_huge_penalty_zeroes_everything(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=ElasticNetConfig(penalty=1e5, mixture=1.0)).fit(linear_data)
        assert (fitted.model.coefficients() == 0.0).all()

    def test_ridge_matches_penalised_least_squares(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=ElasticNetConfig(penalty=5.0, mixture=0.0)).fit(linear_data)
        X = linear_data.frame[["x1", "x2"]].to_numpy()
        y = linear_data.column("y").to_numpy()
        Xc = X - X.mean(axis=0)
        beta = np.linalg.solve(Xc.T @ Xc + 5.0 * np.eye(2), Xc.T @ (y - y.mean()))
        np.testing.assert_allclose(fitted.model.coefficients().to_numpy(), beta, rtol=1e-6)

    def test_l1_norm_shrinks_with_penalty(self, linear_data, linear_roles):
        wf = Workflow(roles=linear_roles, model=ElasticNetConfig(mixture=1.0))
        path = regularization_path(wf, linear_data, [0.0, 1.0, 10.0, 100.0, 1000.0])
        norms = l1_norm_by_penalty(path).to_numpy()
        assert np.all(np.diff(norms) <= 1e-8)
        assert norms[-1] < norms[0]

    def test_path_needs_a_penalised_model(self, linear_data, linear_roles):
        with pytest.raises(UnsupportedOperationError):
            regularization_path(Workflow(roles=linear_roles, model=LinearRegConfig()), linear_data, [1.0])

    def test_no_intervals_for_penalised_fit(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=ElasticNetConfig(penalty=1.0)).fit(linear_data)
        with pytest.raises(UnsupportedPredictionModeError):
            fitted.predict(linear_data, "conf_int")


class TestClassifiers:
    @pytest.mark.parametrize(
        "cfg",
        [LogRegConfig(), LDAConfig(), QDAConfig(), NaiveBayesConfig(), KNNConfig(neighbors=7)],
        ids=lambda c: c.algo,
    )
    def test_separates_two_clouds(self, two_class_data, class_roles, cfg):
        fitted = Workflow(roles=class_roles, model=cfg).fit(two_class_data)
        preds = fitted.predict(two_class_data)
        accuracy = np.mean(preds[".pred_class"].to_numpy() == two_class_data.column("class").to_numpy())
        assert accuracy > 0.85

        proba = fitted.predict(two_class_data, "prob")
        assert proba.columns.tolist() == [".pred_A", ".pred_B"]
        np.testing.assert_allclose(proba.sum(axis=1), 1.0)

    def test_logistic_coefficients_describe_second_level(self, two_class_data, class_roles):
        fitted = Workflow(roles=class_roles, model=LogRegConfig()).fit(two_class_data)
        tidy = fitted.tidy().set_index("term")
        assert tidy.loc["x1", "estimate"] > 0
        assert tidy.loc["x2", "estimate"] > 0
        assert np.isfinite(tidy["std_error"]).all()
        assert "aic" in fitted.glance().columns

    def test_numeric_outcome_rejected(self, linear_data, linear_roles):
        with pytest.raises(ModelTargetTypeMismatchError):
            Workflow(roles=linear_roles, model=LogRegConfig()).fit(linear_data)

    def test_logistic_needs_two_levels(self):
        frame = pd.DataFrame({"x": np.arange(9, dtype=float), "c": ["a", "b", "c"] * 3})
        roles = Roles(outcome="c", predictors=("x",))
        with pytest.raises(ModelTargetTypeMismatchError):
            Workflow(roles=roles, model=LogRegConfig()).fit(Dataset.from_frame(frame))

    def test_lda_handles_three_classes(self):
        rng = np.random.default_rng(1)
        centres = {"a": -4.0, "b": 0.0, "c": 4.0}
        labels = np.repeat(list(centres), 30)
        x = np.array([centres[k] for k in labels]) + rng.normal(size=labels.size)
        data = Dataset.from_frame(pd.DataFrame({"x": x, "c": labels}))
        fitted = Workflow(roles=Roles(outcome="c", predictors=("x",)), model=LDAConfig()).fit(data)
        assert fitted.predict(data, "prob").shape == (90, 3)

    def test_single_class_training_data(self, two_class_data, class_roles):
        only_a = two_class_data.filter(lambda df: df["class"] == "A")
        with pytest.raises(InsufficientDataError):
            Workflow(roles=class_roles, model=LDAConfig()).fit(only_a)

    def test_knn_needs_enough_rows(self, two_class_data, class_roles):
        with pytest.raises(InsufficientDataError):
            Workflow(roles=class_roles, model=KNNConfig(neighbors=50)).fit(two_class_data.take(range(20)))

    def test_numeric_and_interval_modes_unsupported(self, two_class_data, class_roles):
        fitted = Workflow(roles=class_roles, model=LogRegConfig()).fit(two_class_data)
        with pytest.raises(UnsupportedPredictionModeError):
            fitted.predict(two_class_data, "numeric")
        with pytest.raises(UnsupportedPredictionModeError):
            fitted.predict(two_class_data, "pred_int")

    def test_no_coefficients_for_knn(self, two_class_data, class_roles):
        fitted = Workflow(roles=class_roles, model=KNNConfig()).fit(two_class_data)
        with pytest.raises(UnsupportedOperationError):
            fitted.model.coefficients()


class TestBaselines:
    def test_null_regression_predicts_training_mean(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=NullModelConfig()).fit(linear_data)
        preds = fitted.predict(linear_data.take([0, 5]))
        np.testing.assert_allclose(preds[".pred"], linear_data.column("y").mean())

    def test_null_classifier_predicts_majority(self):
        from statflow.extras.datasets import simulate_two_class

        data = simulate_two_class(n=200, imbalance=0.2, seed=3)
        roles = Roles(outcome="class", predictors=("x1", "x2"))
        fitted = Workflow(roles=roles, model=NullModelConfig(mode="classification")).fit(data)
        assert set(fitted.predict(data)[".pred_class"]) == {"A"}

    def test_knn_regressor(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=KNNRegressorConfig(neighbors=5)).fit(linear_data)
        assert fitted.predict(linear_data)[".pred"].shape == (200,)
