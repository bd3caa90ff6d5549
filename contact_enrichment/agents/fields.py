"""Built-in field declarations."""

from contact_enrichment.models.enrichment import EnrichmentField, FieldType

_DEFAULTS: list[tuple[str, str, str, FieldType]] = [
    ("companyName", "Company Name", "Official company name", FieldType.STRING),
    ("website", "Website", "Company website URL", FieldType.STRING),
    ("industry", "Industry", "Primary industry or sector", FieldType.STRING),
    ("headquarters", "Headquarters", "City and region of the head office", FieldType.STRING),
    ("yearFounded", "Year Founded", "Year the company was founded", FieldType.NUMBER),
    ("employeeCount", "Employee Count", "Approximate number of employees", FieldType.STRING),
    ("description", "Description", "What the company does", FieldType.STRING),
    ("fundingStage", "Funding Stage", "Latest funding stage", FieldType.STRING),
    ("totalRaised", "Total Raised", "Total funding raised", FieldType.STRING),
    ("lastRoundAmount", "Last Round Amount", "Size of the most recent round", FieldType.STRING),
    ("investors", "Investors", "Notable investors", FieldType.ARRAY),
    ("techStack", "Tech Stack", "Technologies the company uses", FieldType.ARRAY),
    ("titleNormalized", "Job Title", "The person's normalized job title", FieldType.STRING),
    ("seniority", "Seniority", "The person's seniority level", FieldType.STRING),
    ("department", "Department", "The person's department", FieldType.STRING),
    ("linkedinUrl", "LinkedIn", "The person's LinkedIn profile URL", FieldType.STRING),
    ("location", "Location", "Where the person is based", FieldType.STRING),
]

DEFAULT_FIELDS: list[EnrichmentField] = [
    EnrichmentField(name=name, display_name=display, description=description, type=field_type)
    for name, display, description, field_type in _DEFAULTS
]
