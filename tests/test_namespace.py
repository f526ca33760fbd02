"""Tests for the namespace rewriter."""

import pytest
import yaml

from kube_apply.exceptions import RewriteError
from kube_apply.namespace import with_namespace

CONFIG_MAP = b"""\
apiVersion: v1
kind: ConfigMap
metadata:
  name: x
  namespace: default
data:
  key: value
"""

CRD = b"""\
apiVersion: apiextensions.k8s.io/v1
kind: CustomResourceDefinition
metadata:
  name: widgets.example.com
"""


def test_namespaced_object() -> None:
    """Test a namespace-scoped object is moved to the namespace."""
    result = with_namespace(CONFIG_MAP, "prod")
    doc = yaml.safe_load(result)
    assert doc["metadata"] == {"name": "x", "namespace": "prod"}
    assert doc["data"] == {"key": "value"}


def test_cluster_scoped_object() -> None:
    """Test a cluster-scoped object is not applicable."""
    assert with_namespace(CRD, "prod") == b""


def test_missing_name() -> None:
    """Test a document without metadata.name is not applicable."""
    assert with_namespace(b"kind: ConfigMap\ndata: {}\n", "prod") == b""


def test_multiple_documents() -> None:
    """Test only namespace-scoped documents are moved."""
    result = with_namespace(b"---\n" + CRD + b"---\n" + CONFIG_MAP, "prod")
    docs = list(yaml.safe_load_all(result))
    assert len(docs) == 2
    assert docs[0]["metadata"] == {"name": "widgets.example.com"}
    assert docs[1]["metadata"]["namespace"] == "prod"


def test_invalid_yaml() -> None:
    """Test a manifest that cannot be parsed."""
    with pytest.raises(RewriteError, match="Unable to parse manifest"):
        with_namespace(b"kind: [ConfigMap", "prod")
