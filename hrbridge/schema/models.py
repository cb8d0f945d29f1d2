"""Modelos para regras semânticas e dados de referência do sistema de origem."""
from dataclasses import dataclass, field
from typing import Any, Dict, List


DEFAULT_PATTERNS: Dict[str, List[str]] = {
    "name_variations": [
        "name", "nome", "firstName", "first_name", "primeiroNome",
        "fullName", "full_name", "nomeCompleto", "displayName",
    ],
    "last_name_variations": [
        "lastName", "last_name", "sobrenome", "surname", "familyName",
    ],
    "email_variations": [
        "email", "e-mail", "emailAddress", "mail", "correioEletronico",
    ],
    "document_variations": [
        "cpf", "identificationDocument", "documentNumber", "nationalId",
        "taxId", "documento", "rg",
    ],
    "phone_variations": [
        "phone", "phoneNumber", "mobileNumber", "mobile", "telefone",
        "celular", "cellphone",
    ],
    "birthdate_variations": [
        "birthdate", "birthDate", "dateOfBirth", "dataNascimento", "dob",
    ],
    "gender_variations": ["gender", "sex", "sexo", "genero"],
    "zipcode_variations": ["zipCode", "addressZipCode", "cep", "postalCode", "zip"],
    "city_variations": ["city", "addressCity", "cidade", "municipio"],
    "state_variations": ["state", "addressState", "estado", "uf"],
    "country_variations": ["country", "addressCountry", "pais", "nationality"],
    "company_variations": [
        "company", "companyName", "empresa", "employer", "organization",
    ],
    "salary_variations": ["salary", "baseSalary", "salario", "remuneracao", "wage"],
    "department_variations": ["department", "departamento", "area", "division"],
    "role_variations": ["role", "jobTitle", "cargo", "position", "funcao"],
    "hiring_date_variations": ["hiringDate", "startDate", "admissionDate", "dataAdmissao"],
}

DEFAULT_HIERARCHICAL_PATTERNS: Dict[str, List[str]] = {
    "person_containers": [
        "candidate", "person", "employee", "personalInfo", "pessoa",
        "colaborador", "user", "individual", "PerPersonal",
    ],
    "company_containers": ["company", "empresa", "organization", "employer"],
    "address_containers": ["address", "endereco", "location", "residence"],
    "employment_containers": [
        "job", "employment", "admission", "position", "contract", "EmpJob",
    ],
}


@dataclass
class ConfidenceRules:
    """Pontuações (escala 0-100) de cada regra do matcher."""

    exact_match: float = 100
    semantic_tag_match: float = 95
    similar_name: float = 85
    hierarchical_match: float = 80
    partial_match: float = 70
    minimum_confidence: float = 70

    def to_dict(self) -> Dict[str, Any]:
        """Converte para dicionário."""
        return {
            "exact_match": self.exact_match,
            "semantic_tag_match": self.semantic_tag_match,
            "similar_name": self.similar_name,
            "hierarchical_match": self.hierarchical_match,
            "partial_match": self.partial_match,
            "minimum_confidence": self.minimum_confidence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfidenceRules":
        defaults = cls()
        return cls(**{
            key: float(data.get(key, getattr(defaults, key)))
            for key in defaults.to_dict()
        })


@dataclass
class SemanticRules:
    """Grupos de sinônimos e contêineres usados no mapeamento."""

    patterns: Dict[str, List[str]] = field(default_factory=dict)
    hierarchical_patterns: Dict[str, List[str]] = field(default_factory=dict)
    confidence_rules: ConfidenceRules = field(default_factory=ConfidenceRules)

    @classmethod
    def default(cls) -> "SemanticRules":
        """Regras embutidas para sistemas de RH."""
        return cls(
            patterns={k: list(v) for k, v in DEFAULT_PATTERNS.items()},
            hierarchical_patterns={
                k: list(v) for k, v in DEFAULT_HIERARCHICAL_PATTERNS.items()
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        """Converte para dicionário."""
        return {
            "patterns": self.patterns,
            "hierarchical_patterns": self.hierarchical_patterns,
            "confidence_rules": self.confidence_rules.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SemanticRules":
        return cls(
            patterns={k: list(v) for k, v in (data.get("patterns") or {}).items()},
            hierarchical_patterns={
                k: list(v) for k, v in (data.get("hierarchical_patterns") or {}).items()
            },
            confidence_rules=ConfidenceRules.from_dict(data.get("confidence_rules") or {}),
        )


@dataclass
class ReferenceData:
    """
    Dados de referência do sistema de origem.

    Carregado uma vez pelo chamador e repassado a cada requisição.
    """

    source_schema: Dict[str, Any]
    source_sample: Dict[str, Any] = field(default_factory=dict)
    semantic_rules: SemanticRules = field(default_factory=SemanticRules.default)
    source_system: str = "gupy"
