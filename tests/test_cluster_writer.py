from datetime import datetime

import pytest

from factories import api_error
from kube_assistant.cluster.writer import RESTARTED_AT_ANNOTATION
from kube_assistant.core.exceptions import ClusterError


def test_delete_pod(writer, kube_apis):
    result = writer.delete_pod("api-7f9", "prod")

    kube_apis.core.delete_namespaced_pod.assert_called_once_with("api-7f9", "prod")
    assert result == "Pod api-7f9 deleted from prod"


def test_delete_job_propagates_in_background(writer, kube_apis):
    result = writer.delete_job("migrate", "prod")

    kube_apis.batch.delete_namespaced_job.assert_called_once_with("migrate", "prod", propagation_policy="Background")
    assert result == "Job migrate deleted from prod"


@pytest.mark.parametrize(
    "method, api, call, label",
    [
        ("delete_deployment", "apps", "delete_namespaced_deployment", "Deployment"),
        ("delete_service", "core", "delete_namespaced_service", "Service"),
        ("delete_configmap", "core", "delete_namespaced_config_map", "ConfigMap"),
    ],
)
def test_delete_other_kinds(writer, kube_apis, method, api, call, label):
    result = getattr(writer, method)("api", "prod")

    getattr(getattr(kube_apis, api), call).assert_called_once_with("api", "prod")
    assert result == f"{label} api deleted from prod"


def test_restart_deployment_patches_template_annotation(writer, kube_apis):
    result = writer.restart_deployment("api", "prod")

    name, namespace, patch = kube_apis.apps.patch_namespaced_deployment.call_args.args
    assert (name, namespace) == ("api", "prod")
    stamp = patch["spec"]["template"]["metadata"]["annotations"][RESTARTED_AT_ANNOTATION]
    assert datetime.fromisoformat(stamp).tzinfo is not None
    assert result == "Deployment api restarted in prod"


def test_scale_deployment(writer, kube_apis):
    result = writer.scale_deployment("api", "prod", 3)

    kube_apis.apps.patch_namespaced_deployment.assert_called_once_with("api", "prod", {"spec": {"replicas": 3}})
    assert result == "Deployment api scaled to 3 replicas in prod"


def test_write_failure_raises_cluster_error(writer, kube_apis):
    kube_apis.core.delete_namespaced_pod.side_effect = api_error(404, "Not Found", 'pods "ghost" not found')

    with pytest.raises(ClusterError, match='pods "ghost" not found') as excinfo:
        writer.delete_pod("ghost", "prod")

    assert excinfo.value.status == 404
