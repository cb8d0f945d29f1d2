"""
Task Factory - Builds the nodes of the fixed integration topology

trigger -> [transformations] -> field mapping (1) -> REST call (2)
    -> success output (5) when the call returns 200 OK
    -> pub/sub dead letter queue (4) otherwise
"""

import json
from typing import Any, Dict, List

from config import CompilerConfig
from .models import IntegrationVariable, NextTask, TaskNode

FIELD_MAPPING_TASK_ID = "1"
REST_CALL_TASK_ID = "2"
DLQ_TASK_ID = "4"
SUCCESS_TASK_ID = "5"

RESPONSE_STATUS = "$`Task_2_responseStatus`$"
PAYLOAD_CONFIG_KEY = "`CONFIG_systemPayload`"
ENDPOINT_CONFIG_KEY = "`CONFIG_systemEndpoint`"
EMAIL_CONFIG_KEY = "`CONFIG_customerEmail`"
DLQ_INPUT_KEY = "`Task_4_connectorInputPayload`"
DLQ_OUTPUT_KEY = "`Task_4_connectorOutputPayload`"
FIELD_MAPPING_CONFIG_TYPE = "type.googleapis.com/enterprise.crm.eventbus.proto.FieldMappingConfig"


def _param(key: str, value: Any = None) -> Dict[str, Any]:
    param: Dict[str, Any] = {"key": key}
    if value is not None:
        param["value"] = value
    return param


def _params(**values) -> Dict[str, Any]:
    return {key: _param(key, value) for key, value in values.items()}


def _mapped_field(input_field: Dict[str, Any], reference_key: str, field_type: str) -> Dict[str, Any]:
    return {
        "inputField": input_field,
        "outputField": {
            "referenceKey": reference_key,
            "fieldType": field_type,
            "cardinality": "OPTIONAL",
        },
    }


def _field_mapping_parameters(mapped_fields: List[Dict[str, Any]]) -> Dict[str, Any]:
    config = {"@type": FIELD_MAPPING_CONFIG_TYPE, "mappedFields": mapped_fields}
    return _params(FieldMappingConfigTaskParameterKey={"jsonValue": json.dumps(config)})


def trigger_config(trigger_name: str, start_task_ids: List[str]) -> Dict[str, Any]:
    """API trigger starting the given tasks."""
    return {
        "label": "API Trigger",
        "startTasks": [{"taskId": task_id} for task_id in start_task_ids],
        "properties": {"Trigger name": trigger_name},
        "triggerType": "API",
        "triggerNumber": "2",
        "triggerId": f"api_trigger/{trigger_name}",
        "position": {"x": 140, "y": 45},
        "inputVariables": {},
        "outputVariables": {"names": ["Output"]},
    }


def transformation_task(task_id: int, snippet: str, display_name: str, index: int) -> TaskNode:
    """Jsonnet mapper computing one transformed variable."""
    return TaskNode(
        id=str(task_id),
        kind="JsonnetMapperTask",
        parameters=_params(template={"stringValue": snippet}),
        next_tasks=[NextTask(FIELD_MAPPING_TASK_ID)],
        display_name=display_name,
        position={"x": 140 + index * 200, "y": 100},
    )


def field_mapping_task(config: CompilerConfig) -> TaskNode:
    """Merge static config and the computed payload into runtime variables."""
    mapped_fields = [
        _mapped_field(
            {
                "fieldType": "JSON_VALUE",
                "transformExpression": {
                    "initialValue": {"referenceValue": f"${PAYLOAD_CONFIG_KEY}$"},
                    "transformationFunctions": [
                        {"functionType": {"jsonFunction": {"functionName": "RESOLVE_TEMPLATE"}}}
                    ],
                },
            },
            "$systemPayload$",
            "JSON_VALUE",
        ),
        _mapped_field(
            {
                "fieldType": "STRING_VALUE",
                "transformExpression": {
                    "initialValue": {"referenceValue": f"${ENDPOINT_CONFIG_KEY}$"}
                },
            },
            "$systemEndpoint$",
            "STRING_VALUE",
        ),
        _mapped_field(
            {
                "fieldType": "STRING_VALUE",
                "transformExpression": {
                    "initialValue": {"referenceValue": f"${EMAIL_CONFIG_KEY}$"}
                },
            },
            "$customerEmail$",
            "STRING_VALUE",
        ),
        _mapped_field(
            {
                "fieldType": "STRING_VALUE",
                "transformExpression": {
                    "initialValue": {"literalValue": {"stringValue": config.dlq_topic}}
                },
            },
            f"${DLQ_INPUT_KEY}.topic$",
            "STRING_VALUE",
        ),
        _mapped_field(
            {
                "fieldType": "JSON_VALUE",
                "transformExpression": {
                    "initialValue": {"referenceValue": "$systemPayload$"},
                    "transformationFunctions": [
                        {"functionType": {"stringFunction": {"functionName": "TO_JSON"}}}
                    ],
                },
            },
            f"${DLQ_INPUT_KEY}.message$",
            "STRING_VALUE",
        ),
    ]
    return TaskNode(
        id=FIELD_MAPPING_TASK_ID,
        kind="FieldMappingTask",
        parameters=_field_mapping_parameters(mapped_fields),
        next_tasks=[NextTask(REST_CALL_TASK_ID)],
        display_name="Data Mapping",
        position={"x": 140, "y": 181},
    )


def rest_call_task(config: CompilerConfig) -> TaskNode:
    """POST the payload to the destination endpoint and branch on the status."""
    headers = {
        "Content-Type": "application/json",
        "X-Integration-Source": config.integration_source_header,
    }
    parameters = _params(
        throwError={"booleanValue": True},
        responseBody={"stringArray": {"stringValues": ["$`Task_2_responseBody`$"]}},
        disableSSLValidation={"booleanValue": False},
        authConfigName={"stringValue": ""},
        responseHeader={"stringArray": {"stringValues": ["$`Task_2_responseHeader`$"]}},
        userAgent={"stringValue": ""},
        httpMethod={"stringValue": "POST"},
        responseStatus={"stringArray": {"stringValues": [RESPONSE_STATUS]}},
        timeout={"intValue": "0"},
        url={"stringValue": "$systemEndpoint$"},
        useSSL={"booleanValue": False},
        urlFetchingService={"stringValue": "HARPOON"},
        requestorId={"stringValue": ""},
        jsonAdditionalHeaders={"jsonValue": json.dumps(headers)},
        requestBody={"stringValue": "$systemPayload$"},
        followRedirects={"booleanValue": True},
    )
    for key in ("httpParams", "urlQueryStrings", "additionalHeaders"):
        parameters[key] = _param(key)

    return TaskNode(
        id=REST_CALL_TASK_ID,
        kind="GenericRestV2Task",
        parameters=parameters,
        next_tasks=[
            NextTask(SUCCESS_TASK_ID, f'{RESPONSE_STATUS} = "200 OK"'),
            NextTask(DLQ_TASK_ID, f'{RESPONSE_STATUS} != "200 OK"'),
        ],
        display_name="Call Customer Endpoint",
        position={"x": 140, "y": 317},
        execution_strategy="WHEN_ANY_SUCCEED",
        failure_policy={"defaultFailurePolicy": {"retryStrategy": "IGNORE"}},
    )


def dlq_task(config: CompilerConfig) -> TaskNode:
    """Publish failed payloads to the dead letter topic."""
    return TaskNode(
        id=DLQ_TASK_ID,
        kind="GenericConnectorTask",
        parameters=_params(
            connectorInputPayload={"stringValue": f"${DLQ_INPUT_KEY}$"},
            authOverrideEnabled={"booleanValue": False},
            connectionName={"stringValue": config.pubsub_connection},
            connectorOutputPayload={"stringValue": f"${DLQ_OUTPUT_KEY}$"},
            operation={"stringValue": "EXECUTE_ACTION"},
            connectionVersion={"stringValue": config.pubsub_connector_version},
            actionName={"stringValue": "publishMessage"},
        ),
        display_name="Publish to PubSub DLQ",
        position={"x": 620, "y": 181},
    )


def success_task() -> TaskNode:
    """Terminal node copying the Output variable."""
    mapped_fields = [
        _mapped_field(
            {
                "fieldType": "JSON_VALUE",
                "transformExpression": {"initialValue": {"referenceValue": "$Output$"}},
            },
            "$Output$",
            "JSON_VALUE",
        )
    ]
    return TaskNode(
        id=SUCCESS_TASK_ID,
        kind="FieldMappingTask",
        parameters=_field_mapping_parameters(mapped_fields),
        display_name="Success Output",
        position={"x": 146, "y": 504},
    )


def base_variables(customer_email: str) -> List[IntegrationVariable]:
    """Variables every integration declares."""
    return [
        IntegrationVariable(
            "Output", "JSON_VALUE",
            {"jsonValue": json.dumps({"Status": "Success"})}, "OUT",
        ),
        IntegrationVariable("systemPayload", "JSON_VALUE"),
        IntegrationVariable("customerEmail", "STRING_VALUE", {"stringValue": customer_email}),
        IntegrationVariable("systemEndpoint", "STRING_VALUE"),
        IntegrationVariable("sourcePayload", "JSON_VALUE", {}, "IN"),
        IntegrationVariable(DLQ_INPUT_KEY, "JSON_VALUE"),
        IntegrationVariable(DLQ_OUTPUT_KEY, "JSON_VALUE"),
    ]


def _config_parameter(key: str, data_type: str, default_value: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "parameter": {
            "key": key,
            "dataType": data_type,
            "defaultValue": default_value,
            "displayName": key,
        }
    }


def config_parameters(output_payload: Dict[str, Any], endpoint: str,
                      customer_email: str) -> List[Dict[str, Any]]:
    """Static inputs: serialized payload template, destination endpoint and customer email."""
    return [
        _config_parameter(
            PAYLOAD_CONFIG_KEY, "JSON_VALUE",
            {"jsonValue": json.dumps(output_payload, ensure_ascii=False)},
        ),
        _config_parameter(ENDPOINT_CONFIG_KEY, "STRING_VALUE", {"stringValue": endpoint}),
        _config_parameter(EMAIL_CONFIG_KEY, "STRING_VALUE", {"stringValue": customer_email}),
    ]
