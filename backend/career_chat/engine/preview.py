"""Preview projection — read-only rendering of a (possibly partial) record."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from career_chat.engine.state import ConversationRecord

EMPTY_PREVIEW = "📄 **Seu currículo aparecerá aqui conforme você adiciona informações...**"

HEADINGS = {
    "education": "🎓 **FORMAÇÃO ACADÊMICA**",
    "experience": "💼 **EXPERIÊNCIA PROFISSIONAL**",
    "projects": "🚀 **PROJETOS**",
    "languages": "🌍 **IDIOMAS**",
    "certificates": "🏆 **CERTIFICAÇÕES**",
    "skills": "⚡ **HABILIDADES**",
}


def _personal_lines(record: ConversationRecord) -> list[str]:
    info = record.personal_info
    lines = [f"📄 **{(info.full_name or 'SEU NOME').upper()}**"]
    lines.append(f"📧 {info.email or '[email]'}")
    lines.append(f"📱 {info.phone or '[telefone]'}")
    lines.append(f"📍 {info.address or '[endereço]'}")
    if info.portfolio_url:
        lines.append(f"🌐 {info.portfolio_url}")
    return lines


def _section_lines(record: ConversationRecord, section: str) -> list[str]:
    lines: list[str] = []
    if section == "education":
        for edu in record.education:
            lines.append(f"• {edu.course} - {edu.institution} ({edu.start_date} - {edu.end_date}) · {edu.level.display}")
    elif section == "experience":
        for exp in record.experience:
            lines.append(f"• **{exp.position}** - {exp.company}")
            lines.append(f"  {exp.start_date} - {exp.end_date}")
            if exp.description:
                lines.append(f"  {exp.description}")
    elif section == "projects":
        for project in record.projects:
            lines.append(f"• **{project.name}** - {project.role}")
            lines.append(f"  {project.start_date} - {project.end_date}")
            if project.description:
                lines.append(f"  {project.description}")
    elif section == "languages":
        for lang in record.languages:
            lines.append(f"• {lang.name}: {lang.level.display}")
    elif section == "certificates":
        for cert in record.certificates:
            lines.append(f"• {cert.name} - {cert.institution} ({cert.year})")
    elif section == "skills":
        if record.skills:
            lines.append(" • ".join(record.skills))
    return lines


def render(record: ConversationRecord) -> str:
    """Format the record section by section; empty sections are left out."""
    if record.is_empty():
        return EMPTY_PREVIEW

    blocks: list[str] = []
    if not record.personal_info.is_empty():
        blocks.append("\n".join(_personal_lines(record)))

    for section, heading in HEADINGS.items():
        lines = _section_lines(record, section)
        if lines:
            blocks.append("\n".join([heading, *lines]))

    return "\n\n".join(blocks)


def _get_jinja_env() -> Environment:
    templates_dir = Path(__file__).parent.parent / "templates"
    return Environment(loader=FileSystemLoader(str(templates_dir)), autoescape=True)


def render_html(record: ConversationRecord, title: str = "Currículo") -> str:
    """Standalone HTML export of the same projection; user text is escaped."""
    info = record.personal_info
    contact = [c for c in (info.email, info.phone, info.address, info.portfolio_url) if c]
    template = _get_jinja_env().get_template("resume.html.j2")
    return template.render(title=title, record=record, info=info, contact=contact)
