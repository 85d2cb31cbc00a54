"""Dossier recap PDF ("récit récapitulatif")."""

from __future__ import annotations

from datetime import date
from typing import Any

from pawlegal.services.pdf.document_header import BrandedDocument, create_document_with_header
from pawlegal.utils.datetime_utils import format_short_date_fr


def recap_filename(numero: str | None, dossier_id: int, today: date) -> str:
    return f"Recit_Dossier_{numero or dossier_id}_{today.isoformat()}.pdf"


def _size(taille: int | None) -> str:
    if not taille:
        return "N/A"
    return f"{taille / 1024:.2f} KB"


def _person_line(person: dict | None) -> str | None:
    if not person:
        return None
    return f"{person['nom'] or person['email']} ({person['email']})"


def _section_dossier(doc: BrandedDocument, recap: dict[str, Any]) -> None:
    d = recap["dossier"]
    doc.add_heading("INFORMATIONS DU DOSSIER")
    doc.add_field("Numéro", d["numero"])
    doc.add_field("Titre", d["titre"] or "Sans titre")
    doc.add_field("Catégorie", d["categorie"])
    doc.add_field("Type", d["type"])
    doc.add_field("Statut", d["statut"])
    doc.add_field("Priorité", d["priorite"])
    doc.add_field("Créé le", format_short_date_fr(d["created_at"]))
    doc.add_field("Dernière mise à jour", format_short_date_fr(d["updated_at"]))
    if d["date_echeance"]:
        doc.add_field("Échéance", format_short_date_fr(d["date_echeance"]))
    if d["motif_refus"]:
        doc.add_field("Motif de refus", d["motif_refus"])


def _section_client(doc: BrandedDocument, recap: dict[str, Any]) -> None:
    c = recap["client"]
    doc.add_heading("INFORMATIONS CLIENT")
    doc.add_field("Nom", c["nom"])
    doc.add_field("Email", c["email"])
    if c["telephone"]:
        doc.add_field("Téléphone", c["telephone"])
    if c["inscrit_depuis"]:
        doc.add_field("Inscrit depuis", format_short_date_fr(c["inscrit_depuis"]))


def _section_team(doc: BrandedDocument, recap: dict[str, Any]) -> None:
    team = recap["equipe"]
    doc.add_heading("ÉQUIPE DE TRAITEMENT")
    lines = [
        ("Créateur", _person_line(team["createur"])),
        ("Chef d'équipe", _person_line(team["chef_equipe"])),
        ("Assigné à", _person_line(team["assigne_a"])),
    ]
    shown = [(label, value) for label, value in lines if value]
    if not shown:
        doc.add_paragraph("Aucun membre assigné.", "muted")
    for label, value in shown:
        doc.add_field(label, value)


def _section_documents(doc: BrandedDocument, recap: dict[str, Any]) -> None:
    docs = recap["documents"]
    doc.add_heading("DOCUMENTS")
    doc.add_paragraph(f"Total : {docs['total']} document(s)")
    if docs["liste"]:
        doc.add_table(
            ["Nom", "Type", "Taille", "Ajouté par", "Date"],
            [
                [d["nom"], d["type"], _size(d["taille"]), d["upload_par"], format_short_date_fr(d["date_upload"])]
                for d in docs["liste"]
            ],
            col_widths=[0.32, 0.2, 0.12, 0.2, 0.16],
        )


def _section_tasks(doc: BrandedDocument, recap: dict[str, Any]) -> None:
    tasks = recap["taches"]
    doc.add_heading("TÂCHES")
    doc.add_paragraph(f"Total : {tasks['total']} tâche(s)")
    doc.add_paragraph(f"En cours : {tasks['en_cours']} | Terminées : {tasks['terminees']}")
    for index, task in enumerate(tasks["liste"], start=1):
        doc.add_paragraph(f"{index}. {task['titre']}", indent=4)
        doc.add_paragraph(
            f"Statut : {task['statut']} | Priorité : {task['priorite']} | Assigné à : {task['assigne_a']}",
            "muted",
            indent=8,
        )


def _section_messages(doc: BrandedDocument, recap: dict[str, Any]) -> None:
    messages = recap["messages"]
    doc.add_heading("COMMUNICATION")
    doc.add_paragraph(f"Total : {messages['total']} message(s) échangé(s)")
    for m in messages["liste"]:
        doc.add_paragraph(f"{format_short_date_fr(m['date'])} - {m['sujet']}", indent=4)
        doc.add_paragraph(f"De : {m['expediteur']} | À : {m['destinataires']}", "muted", indent=8)


def _section_appointments(doc: BrandedDocument, recap: dict[str, Any]) -> None:
    rdv = recap["rendez_vous"]
    doc.add_heading("RENDEZ-VOUS")
    doc.add_paragraph(f"Total : {rdv['total']} rendez-vous")
    doc.add_paragraph(f"Passés : {rdv['passes']} | À venir : {rdv['a_venir']}")
    for a in rdv["liste"]:
        doc.add_paragraph(f"{format_short_date_fr(a['date'])} à {a['heure']} - {a['statut']}", "muted", indent=4)


def _section_transmissions(doc: BrandedDocument, recap: dict[str, Any]) -> None:
    if not recap["transmissions"]:
        return
    doc.add_heading("TRANSMISSIONS AUX PARTENAIRES")
    for index, trans in enumerate(recap["transmissions"], start=1):
        partner = trans["partenaire"]["nom"] if trans["partenaire"] else "Partenaire supprimé"
        doc.add_paragraph(f"{index}. {partner}", indent=4)
        doc.add_paragraph(
            f"Transmis le : {format_short_date_fr(trans['date_transmission'])} | Statut : {trans['statut']}",
            "muted",
            indent=8,
        )
        if trans["date_acceptation"]:
            doc.add_paragraph(f"Accepté le : {format_short_date_fr(trans['date_acceptation'])}", "muted", indent=8)


def _history_entry(doc: BrandedDocument, entry: dict[str, Any]) -> None:
    doc.add_paragraph(f"{format_short_date_fr(entry['date'])} - {entry['description']}", indent=4)
    doc.add_paragraph(f"Par : {entry['utilisateur']}", "muted", indent=8)


def _section_history(doc: BrandedDocument, recap: dict[str, Any]) -> None:
    if not recap["historique"]:
        return
    doc.add_heading("HISTORIQUE RÉCENT")
    for index, log in enumerate(recap["historique"], start=1):
        doc.add_entry(
            index,
            lambda d, entry=log: _history_entry(d, entry),
            error_text="Erreur sur l'entrée d'historique #{index} (entrée ignorée)",
        )


def _section_stats(doc: BrandedDocument, recap: dict[str, Any]) -> None:
    stats = recap["statistiques"]
    doc.add_heading("STATISTIQUES")
    doc.add_field("Durée de traitement", f"{stats['duree_traitement']} jour(s)")
    doc.add_field("Jours depuis la dernière mise à jour", stats["jours_depuis_derniere_maj"])
    doc.add_field("Nombre de modifications", stats["nombre_modifications"])
    doc.add_field("Changements de statut", stats["nombre_changements_statut"])


_SECTIONS = (
    _section_dossier,
    _section_client,
    _section_team,
    _section_documents,
    _section_tasks,
    _section_messages,
    _section_appointments,
    _section_transmissions,
    _section_history,
    _section_stats,
)


def render_dossier_recap(recap: dict[str, Any], *, compress: bool | None = None) -> BrandedDocument:
    """Lay out a recap produced by ``build_recap``; one failing section is replaced by a marker."""
    numero = recap["dossier"]["numero"] or str(recap["dossier"]["id"])
    doc = create_document_with_header(
        f"Récit récapitulatif - Dossier {numero}",
        f"Dossier {numero}",
        compress=compress,
    )
    doc.add_title("RÉCIT RÉCAPITULATIF DU DOSSIER")
    doc.add_subtitle(f"Dossier {numero}")
    doc.add_separator()

    for index, section in enumerate(_SECTIONS, start=1):
        doc.add_entry(
            index,
            lambda d, render=section: render(d, recap),
            error_text="Erreur sur la section #{index} (section ignorée)",
            keep_together=False,
        )

    description = recap["dossier"]["description"]
    if description:
        doc.add_heading("DESCRIPTION")
        doc.add_paragraph(description)
    notes = recap["dossier"]["notes"]
    if notes:
        doc.add_heading("NOTES INTERNES")
        doc.add_paragraph(notes)
    return doc
