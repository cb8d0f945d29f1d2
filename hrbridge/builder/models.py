"""Integration request and compiled artifact models."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from hrbridge.mapper.mapping import Mapping


@dataclass
class IntegrationRequest:
    """Input of one compile call."""

    customer_email: str
    destination_endpoint: str
    mappings: List[Mapping] = field(default_factory=list)
    source_payload: Optional[Dict[str, Any]] = None
    integration_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IntegrationRequest":
        return cls(
            customer_email=data.get("customerEmail") or "",
            destination_endpoint=data.get("destinationEndpoint") or data.get("systemEndpoint") or "",
            mappings=[Mapping.from_dict(m) for m in data.get("mappings") or []],
            source_payload=data.get("sourcePayload"),
            integration_name=data.get("integrationName"),
        )


@dataclass
class NextTask:
    """Edge of the task graph."""

    task_id: str
    condition: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {"taskId": self.task_id}
        if self.condition:
            data["condition"] = self.condition
        return data


@dataclass
class TaskNode:
    """Node of the compiled task graph."""

    id: str
    kind: str
    parameters: Dict[str, Any]
    next_tasks: List[NextTask] = field(default_factory=list)
    display_name: str = ""
    position: Dict[str, int] = field(default_factory=dict)
    execution_strategy: str = "WHEN_ALL_SUCCEED"
    failure_policy: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "task": self.kind,
            "taskId": self.id,
            "parameters": self.parameters,
            "nextTasks": [t.to_dict() for t in self.next_tasks],
            "taskExecutionStrategy": self.execution_strategy,
            "displayName": self.display_name,
            "externalTaskType": "NORMAL_TASK",
            "position": {k: str(v) for k, v in self.position.items()},
        }
        if self.failure_policy:
            data["conditionalFailurePolicies"] = self.failure_policy
        return data


@dataclass
class IntegrationVariable:
    """Entry of the flat variable table."""

    key: str
    data_type: str = "STRING_VALUE"
    default_value: Dict[str, Any] = field(default_factory=dict)
    input_output_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "key": self.key,
            "dataType": self.data_type,
            "defaultValue": self.default_value,
            "displayName": self.key,
        }
        if self.input_output_type:
            data["inputOutputType"] = self.input_output_type
        return data


@dataclass
class Artifact:
    """Compiled integration: task graph, variables and payloads."""

    name: str
    trigger: Dict[str, Any]
    tasks: List[TaskNode]
    variables: List[IntegrationVariable]
    config_parameters: List[Dict[str, Any]]
    output_payload: Dict[str, Any]
    preview_payload: Dict[str, Any]
    warnings: List[str] = field(default_factory=list)

    def task(self, task_id: str) -> Optional[TaskNode]:
        for node in self.tasks:
            if node.id == task_id:
                return node
        return None

    @property
    def transformation_tasks(self) -> List[TaskNode]:
        return [t for t in self.tasks if t.kind == "JsonnetMapperTask"]

    def to_dict(self) -> Dict[str, Any]:
        """Runtime document consumed by the integration platform."""
        return {
            "name": self.name,
            "triggerConfigs": [self.trigger],
            "taskConfigs": [t.to_dict() for t in self.tasks],
            "integrationParameters": [v.to_dict() for v in self.variables],
            "errorCatcherConfigs": [],
            "integrationConfigParameters": self.config_parameters,
        }
