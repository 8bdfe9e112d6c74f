"""Per-pathway ridge logistic regression with repeated stratified CV.

Model selection runs entirely on the training set. Centring and scaling are
part of the fitted pipeline, so their statistics always come from the rows
the model is fitted on (a CV training fold, or the full training set for the
final refit) and never from validation or test rows.

Penalty strengths follow the glmnet convention: the objective is
mean log-loss + (lambda / 2) * ||beta||^2, which maps to scikit-learn's
C = 1 / (lambda * n_fit). lambda = 0 fits an unpenalised model.
"""

import warnings
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
import polars as pl
import structlog
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import roc_auc_score
from sklearn.model_selection import RepeatedStratifiedKFold
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from pathway_sim.catalog.universe import CLASS_COLUMN, project_columns
from pathway_sim.errors import InsufficientData, InvalidConfiguration
from pathway_sim.simulation.cohort import GROUP2
from pathway_sim.simulation.partition import Split

logger = structlog.get_logger(__name__)

MAX_ITER = 1000


@dataclass
class TrainedModel:
    """Classifier fitted on one pathway's genes for one sample size.

    Attributes:
        pathway_id: Catalog term
        sample_size: Scenario the model was trained on
        genes: Feature columns, in the order the model expects
        selected_lambda: Penalty chosen by cross-validation
        cv_auc: Mean CV ROC-AUC of selected_lambda
        cv_results: Per-lambda table (lambda, mean_auc, std_auc, n_folds)
        n_train: Training rows used for the final refit
        estimator: Fitted scaler + logistic regression pipeline
    """
    pathway_id: str
    sample_size: int
    genes: list[str]
    selected_lambda: float
    cv_auc: float
    cv_results: pl.DataFrame
    n_train: int
    estimator: Pipeline

    @property
    def scaler_mean(self) -> np.ndarray:
        return self.estimator.named_steps["scaler"].mean_

    @property
    def scaler_scale(self) -> np.ndarray:
        return self.estimator.named_steps["scaler"].scale_

    def predict_probability(self, rows: pl.DataFrame) -> np.ndarray:
        """Probability of Group2 for each row.

        Args:
            rows: Frame containing at least the model's gene columns

        Returns:
            1-D array of probabilities, one per row

        Raises:
            KeyError: If any model gene is missing from rows
        """
        missing = [g for g in self.genes if g not in rows.columns]
        if missing:
            raise KeyError(f"Rows are missing model genes: {missing[:10]}")
        X = rows.select(self.genes).to_numpy().astype(np.float64)
        return self.estimator.predict_proba(X)[:, 1]


def make_estimator(lam: float, n_fit: int) -> Pipeline:
    """Scaler + logistic regression for penalty lam on n_fit rows."""
    if lam == 0:
        clf = LogisticRegression(penalty=None, max_iter=MAX_ITER)
    else:
        clf = LogisticRegression(C=1.0 / (lam * n_fit), max_iter=MAX_ITER)
    return Pipeline([("scaler", StandardScaler()), ("clf", clf)])


def _fit(lam: float, X: np.ndarray, y: np.ndarray) -> tuple[Pipeline, int]:
    estimator = make_estimator(lam, len(y))
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ConvergenceWarning)
        estimator.fit(X, y)
    n_unconverged = sum(
        1 for w in caught if issubclass(w.category, ConvergenceWarning)
    )
    return estimator, n_unconverged


def encode_labels(labels: pl.Series | np.ndarray) -> np.ndarray:
    """Group2 -> 1 (positive class), anything else -> 0."""
    return (np.asarray(labels) == GROUP2).astype(np.int64)


def select_lambda(mean_auc: np.ndarray) -> int:
    """Index of the best lambda; ties go to the first (lowest) grid entry."""
    scores = np.where(np.isnan(mean_auc), -np.inf, mean_auc)
    # np.argmax returns the first maximum
    return int(np.argmax(scores))


def train_pathway_model(
    pathway_id: str,
    genes: Iterable[str],
    split: Split,
    lambda_grid: Sequence[float],
    k_folds: int = 5,
    repeats: int = 5,
    seed: int = 0,
) -> TrainedModel:
    """
    Tune and fit a ridge logistic regression on one pathway's genes.

    Args:
        pathway_id: Catalog term (for context and the returned model)
        genes: Pathway gene identifiers
        split: Train/test partition; only split.train is used
        lambda_grid: Ascending penalty strengths
        k_folds: Folds per CV repeat
        repeats: Number of CV repeats
        seed: Seed for fold assignment

    Returns:
        TrainedModel refitted on all training rows with the selected lambda

    Raises:
        PathwayNotApplicable: If no pathway gene is a cohort column
        InvalidConfiguration: If lambda_grid is empty
        InsufficientData: If the training set cannot support 2-fold
                          stratified CV or no fold yields a valid AUC
    """
    sample_size = split.sample_size
    grid = [float(lam) for lam in lambda_grid]
    if not grid:
        raise InvalidConfiguration(
            "lambda_grid is empty", pathway_id=pathway_id, sample_size=sample_size
        )

    train = project_columns(
        split.train, genes, pathway_id=pathway_id, sample_size=sample_size
    )
    feature_names = [c for c in train.columns if c != CLASS_COLUMN]
    X = train.select(feature_names).to_numpy().astype(np.float64)
    y = encode_labels(train[CLASS_COLUMN])

    min_class = int(np.bincount(y, minlength=2).min())
    n_splits = min(k_folds, min_class)
    if n_splits < 2:
        raise InsufficientData(
            f"Training set has {min_class} rows in its smallest class; "
            "cross-validation needs at least 2",
            pathway_id=pathway_id,
            sample_size=sample_size,
        )
    if n_splits < k_folds:
        logger.warning(
            "cv_folds_reduced",
            pathway_id=pathway_id,
            sample_size=sample_size,
            requested=k_folds,
            used=n_splits,
        )

    cv = RepeatedStratifiedKFold(
        n_splits=n_splits, n_repeats=repeats, random_state=seed
    )
    fold_auc = np.full((len(grid), n_splits * repeats), np.nan)
    n_unconverged = 0

    for f, (fit_idx, val_idx) in enumerate(cv.split(X, y)):
        if len(np.unique(y[val_idx])) < 2:
            continue
        for j, lam in enumerate(grid):
            estimator, n_warn = _fit(lam, X[fit_idx], y[fit_idx])
            n_unconverged += n_warn
            prob = estimator.predict_proba(X[val_idx])[:, 1]
            fold_auc[j, f] = roc_auc_score(y[val_idx], prob)

    n_valid = np.sum(~np.isnan(fold_auc), axis=1)
    if not n_valid.any():
        raise InsufficientData(
            "No cross-validation fold produced a valid AUC",
            pathway_id=pathway_id,
            sample_size=sample_size,
        )

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        mean_auc = np.nanmean(fold_auc, axis=1)
        std_auc = np.nanstd(fold_auc, axis=1)

    best = select_lambda(mean_auc)
    estimator, n_warn = _fit(grid[best], X, y)
    n_unconverged += n_warn

    if n_unconverged:
        logger.debug(
            "train_pathway_unconverged_fits",
            pathway_id=pathway_id,
            sample_size=sample_size,
            count=n_unconverged,
        )

    cv_results = pl.DataFrame({
        "lambda": grid,
        "mean_auc": mean_auc.tolist(),
        "std_auc": std_auc.tolist(),
        "n_folds": n_valid.tolist(),
    })

    logger.debug(
        "train_pathway_done",
        pathway_id=pathway_id,
        sample_size=sample_size,
        genes=len(feature_names),
        selected_lambda=grid[best],
        cv_auc=float(mean_auc[best]),
    )

    return TrainedModel(
        pathway_id=pathway_id,
        sample_size=sample_size,
        genes=feature_names,
        selected_lambda=grid[best],
        cv_auc=float(mean_auc[best]),
        cv_results=cv_results,
        n_train=train.height,
        estimator=estimator,
    )
