"""Assistant message templates for the resume builder and interview simulator."""

from __future__ import annotations

from career_chat.engine.state import EDUCATION_LEVEL_DISPLAY, LANGUAGE_LEVEL_DISPLAY

_NUMERALS = ["1️⃣", "2️⃣", "3️⃣", "4️⃣", "5️⃣", "6️⃣", "7️⃣", "8️⃣", "9️⃣"]


def _menu(options) -> str:
    return "\n".join(f"{_NUMERALS[i]} {label}" for i, label in enumerate(options))


EDUCATION_MENU = _menu(EDUCATION_LEVEL_DISPLAY.values())
LANGUAGE_MENU = _menu(LANGUAGE_LEVEL_DISPLAY.values())

# ── Resume builder ────────────────────────────────────────────────────────────

WELCOME = """Olá! 👋 Sou seu assistente de carreira virtual e vou te ajudar a criar um currículo profissional e impactante.

🎯 **Como funciona:**
• Vou fazer algumas perguntas sobre seus dados, educação e experiência
• A qualquer momento, você pode digitar **"preview"** para ver como o currículo está ficando
• Quando estiver satisfeito, digite **"finalizar"** para salvar

✨ **Vamos começar?**

Para começar, me conte: **Qual é o seu nome completo (nome e sobrenome)?**"""

GENERIC_REPROMPT = "Não entendi muito bem. 🤔 Pode responder novamente à última pergunta?"

ASK_EMAIL = "Perfeito, {name}! 👍\n\nAgora preciso do seu **e-mail profissional** para contato:"
INVALID_EMAIL = "Por favor, digite um e-mail válido (exemplo: seunome@email.com):"
ASK_PHONE = "Ótimo! 📧\n\nAgora me informe seu **número de telefone** com DDD (exemplo: (11) 99999-9999):"
ASK_ADDRESS = "Telefone registrado! 📱\n\n**Qual é o seu endereço?** (Cidade e estado já são suficientes):"
ASK_PORTFOLIO = (
    "Endereço salvo! 📍\n\n**Você possui algum site pessoal, LinkedIn, GitHub ou portfólio online?**\n\n"
    'Se sim, me envie o link. Se não, digite "não" para pularmos esta parte:'
)
PORTFOLIO_ADDED = "Link adicionado! 🌐\n\n"
PORTFOLIO_SKIPPED = "Sem problemas! 👍\n\n"

START_EDUCATION = (
    "**Agora vamos para sua formação acadêmica! 🎓**\n\n"
    "Qual nível de educação você gostaria de adicionar primeiro?\n\n"
    f"{EDUCATION_MENU}\n\nDigite o número ou nome da opção:"
)
ASK_EDUCATION_LEVEL = (
    "**Qual nível de educação você gostaria de adicionar?**\n\n"
    f"{EDUCATION_MENU}\n\nDigite o número ou nome da opção:"
)
INVALID_EDUCATION_LEVEL = (
    "Por favor, escolha uma opção válida (1-9) ou digite o nome do nível:\n\n" f"{EDUCATION_MENU}"
)
ASK_INSTITUTION = "**{level}** selecionado! 📚\n\n**Nome da Instituição:**"
ASK_COURSE = "**Nome do Curso:**"
ASK_DATES = '**Data de início e conclusão:**\n\nExemplo: "2020 - 2024" ou "2022 - Cursando"'
INVALID_DATES = 'Por favor, use o formato "Ano Início - Ano Fim" (exemplo: 2020 - 2024):'
EDUCATION_ADDED = "Formação adicionada com sucesso! ✅\n\n**Você gostaria de adicionar outra formação?** (Sim/Não)"

START_EXPERIENCE = (
    "**Perfeito! Agora vamos para suas experiências profissionais! 💼**\n\n"
    "**Gostaria de adicionar uma experiência profissional?** (Sim/Não)"
)
ASK_COMPANY = "**Nome da Empresa:**"
ASK_POSITION = "**Cargo ocupado:**"
ASK_EXPERIENCE_DESCRIPTION = "**Descreva brevemente suas principais atividades e conquistas:**"
EXPERIENCE_ADDED = "Experiência adicionada! ✅\n\n**Gostaria de adicionar outra experiência?** (Sim/Não)"

START_PROJECTS = (
    "**Vamos para os projetos pessoais/acadêmicos! 🚀**\n\n"
    "**Você tem algum projeto pessoal ou acadêmico relevante que gostaria de destacar?** (Sim/Não)"
)
ASK_PROJECT_NAME = "**Nome do Projeto:**"
ASK_PROJECT_ROLE = "**Qual foi o seu papel no projeto?**"
ASK_PROJECT_DESCRIPTION = "**Descreva o projeto e as tecnologias utilizadas:**"
PROJECT_ADDED = "Projeto adicionado! ✅\n\n**Gostaria de adicionar outro projeto?** (Sim/Não)"

START_LANGUAGES = (
    "**Vamos para os idiomas! 🌍**\n\n"
    '**Qual idioma você gostaria de adicionar?** (ou digite "não" para pular)'
)
ASK_LANGUAGE_NAME = "**Qual idioma você gostaria de adicionar?**"
ASK_LANGUAGE_LEVEL = "**{name}** anotado! Qual o seu nível?\n\n" f"{LANGUAGE_MENU}\n\nDigite o número ou nome do nível:"
INVALID_LANGUAGE_LEVEL = "Por favor, escolha um nível válido (1-4):\n\n" f"{LANGUAGE_MENU}"
LANGUAGE_ADDED = "Idioma adicionado! ✅\n\n**Gostaria de adicionar outro idioma?** (Sim/Não)"

START_CERTIFICATES = (
    "**Agora vamos para certificações! 🏆**\n\n"
    "**Você possui cursos ou certificados importantes para a sua área?** (Sim/Não)"
)
ASK_CERTIFICATE_NAME = "**Nome do curso ou certificado:**"
ASK_CERTIFICATE_INSTITUTION = "**Instituição emissora:**"
ASK_CERTIFICATE_YEAR = "**Ano de conclusão:**"
CERTIFICATE_ADDED = "Certificado adicionado! ✅\n\n**Gostaria de adicionar outro certificado?** (Sim/Não)"

START_SKILLS = (
    "**Para finalizar, liste suas principais habilidades técnicas e comportamentais!** ⚡\n\n"
    "**Exemplo:** Pacote Office, Comunicação Efetiva, Python, Proatividade, React Native\n\n"
    "(Separe por vírgulas)"
)

START_REVIEW = (
    "**🎉 Parabéns! Seu currículo está pronto!**\n\n"
    'Digite **"preview"** para ver a versão final.\n\n'
    "**Gostaria de revisar alguma seção específica?** Digite o nome da seção "
    '(ex: "experiência", "educação") ou **"finalizar"** se está tudo certo!'
)
BACK_TO_REVIEW = (
    "Seção atualizada! ✅\n\n"
    'Digite **"preview"** para conferir, o nome de outra seção para refazê-la, ou **"finalizar"** para salvar.'
)
RESTART_SECTION = "Vamos refazer a seção **{section}**. As entradas anteriores foram descartadas.\n\n{prompt}"
DOWNLOAD_INFO = (
    '**📁 Download**\n\nDigite **"finalizar"** para salvar o currículo. '
    'Depois disso ele fica disponível em "Meus Currículos" para exportar em HTML.'
)
SECTION_LIMIT_REACHED = "Você atingiu o limite de {limit} itens nesta seção. Vamos seguir! 👉\n\n"
ALREADY_COMPLETE = 'Seu currículo já foi finalizado! 🎉 Acesse "Meus Currículos" para visualizar ou exportar.'

FINISH_INCOMPLETE = (
    "Ainda faltam dados essenciais (nome completo e e-mail). "
    "Continue preenchendo antes de salvar."
)
FINALIZED = """🎉 **Parabéns! Seu currículo "{title}" foi salvo com sucesso!**

✅ **Seu currículo está salvo e pode ser acessado em "Meus Currículos".**

📄 **Próximos passos:**
- Acesse "Meus Currículos" para visualizar ou exportar
- Compartilhe com recrutadores
- Mantenha sempre atualizado"""
FINALIZE_FAILED = "Não foi possível salvar o currículo. Seus dados foram mantidos; tente novamente em instantes."
DRAFT_RESUMED = "Você tem um currículo em andamento ({progress}% concluído). Vamos continuar de onde parou!"


def default_title(full_name: str, date_label: str) -> str:
    return f"Currículo - {full_name or 'Usuário'} - {date_label}"


# ── Interview simulator ───────────────────────────────────────────────────────

INTERVIEW_WELCOME = """👋 **Olá! Bem-vindo ao Simulador de Entrevistas IA**

Sou seu entrevistador virtual especializado em tecnologia. Vou conduzir uma entrevista completa baseada no seu nível **{level}** e nas suas habilidades.

🎯 **Como funciona:**
• {total} perguntas personalizadas
• Mistura de questões técnicas e comportamentais
• Feedback detalhado em tempo real
• Avaliação final com nível do candidato

**Pronto para começar?** Inicie a entrevista quando estiver preparado!"""

QUESTION_PROMPT = """Você é um entrevistador técnico especializado. Gere uma pergunta de entrevista para um desenvolvedor nível {level}.

Contexto:
- Pergunta {number} de {total}
- Habilidades principais: {skills}
- Nível: {level}

Tipos de pergunta (alterne entre eles):
- Técnica: Conceitos, algoritmos, arquitetura
- Comportamental: Experiências, desafios, liderança
- Situacional: Resolução de problemas, cenários reais

Formate como:
**Pergunta {number}/{total}** - [Categoria]

[Sua pergunta aqui]

*Dica: [Uma dica útil para responder bem]*"""

EVALUATION_PROMPT = """Você é um entrevistador especializado avaliando uma resposta de entrevista.

Pergunta atual: {number}/{total}
Nível do candidato: {level}

Pergunta feita: "{question}"

Resposta do candidato: "{answer}"

Forneça:
1. **Feedback**: Análise detalhada da resposta (2-3 frases)
2. **Pontos positivos**: O que foi bem na resposta
3. **Melhorias**: Como poderia ser aprimorada
4. **Nota**: Score de 0-10 baseado em clareza, conhecimento técnico, exemplos práticos e adequação ao nível

**Feedback da Resposta:**
[Seu feedback aqui]

**Nota: X/10**"""

INTERVIEW_SUMMARY = """🎉 **Entrevista Concluída!**

## 📊 **Resultados Finais**

**Score Médio:** {average:.1f}/10
**Nível de Performance:** {performance}
**Tempo Total:** {minutes} minutos
**Perguntas Respondidas:** {answered}

## 🎯 **Avaliação Geral**

{feedback}

## 📈 **Próximos Passos**

{next_steps}

**Parabéns pelo esforço!** 🚀"""
