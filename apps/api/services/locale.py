"""Request locale context and the server-side message catalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from config import settings


MESSAGES: Dict[str, Dict[str, str]] = {
    "errors.generic": {
        "FR": "Une erreur est survenue. Veuillez réessayer.",
        "DE": "Ein Fehler ist aufgetreten. Bitte versuchen Sie es erneut.",
        "IT": "Si è verificato un errore. Riprovare.",
        "EN": "An error occurred. Please try again.",
    },
    "users.notFound": {
        "FR": "Utilisateur introuvable",
        "DE": "Benutzer nicht gefunden",
        "IT": "Utente non trovato",
        "EN": "User not found",
    },
    "auth.invalidCredentials": {
        "FR": "Adresse e-mail ou mot de passe invalide",
        "DE": "Ungültige E-Mail-Adresse oder ungültiges Passwort",
        "IT": "Indirizzo e-mail o password non validi",
        "EN": "Invalid email or password",
    },
    "auth.emailTaken": {
        "FR": "Un compte existe déjà avec cette adresse e-mail",
        "DE": "Für diese E-Mail-Adresse existiert bereits ein Konto",
        "IT": "Esiste già un account con questo indirizzo e-mail",
        "EN": "An account already exists for this email",
    },
    "auth.passwordTooShort": {
        "FR": "Le mot de passe doit contenir au moins {min_length} caractères",
        "DE": "Das Passwort muss mindestens {min_length} Zeichen lang sein",
        "IT": "La password deve contenere almeno {min_length} caratteri",
        "EN": "Password must be at least {min_length} characters",
    },
    "auth.passwordMismatch": {
        "FR": "Les mots de passe ne correspondent pas",
        "DE": "Die Passwörter stimmen nicht überein",
        "IT": "Le password non corrispondono",
        "EN": "Passwords do not match",
    },
    "auth.pendingApproval": {
        "FR": "Votre compte est en attente de validation",
        "DE": "Ihr Konto wartet auf Freigabe",
        "IT": "Il tuo account è in attesa di approvazione",
        "EN": "Your account is awaiting approval",
    },
    "credits.packNotFound": {
        "FR": "Pack de crédits introuvable",
        "DE": "Kreditpaket nicht gefunden",
        "IT": "Pacchetto di crediti non trovato",
        "EN": "Credit pack not found",
    },
    "credits.purchaseSuccess": {
        "FR": "{credits} crédits ont été ajoutés à votre compte",
        "DE": "{credits} Credits wurden Ihrem Konto gutgeschrieben",
        "IT": "{credits} crediti sono stati aggiunti al tuo account",
        "EN": "{credits} credits have been added to your account",
    },
    "credits.purchaseError": {
        "FR": "Erreur lors de l'achat. Veuillez réessayer.",
        "DE": "Fehler beim Kauf. Bitte versuchen Sie es erneut.",
        "IT": "Errore durante l'acquisto. Riprovare.",
        "EN": "Purchase failed. Please try again.",
    },
    "search.addressRequired": {
        "FR": "Veuillez d'abord rechercher une adresse",
        "DE": "Bitte suchen Sie zuerst eine Adresse",
        "IT": "Cerca prima un indirizzo",
        "EN": "Please search for an address first",
    },
    "search.noOptionsSelected": {
        "FR": "Sélectionnez au moins une option",
        "DE": "Wählen Sie mindestens eine Option",
        "IT": "Seleziona almeno un'opzione",
        "EN": "Select at least one option",
    },
    "search.unknownTools": {
        "FR": "Options inconnues ou inactives: {tool_ids}",
        "DE": "Unbekannte oder inaktive Optionen: {tool_ids}",
        "IT": "Opzioni sconosciute o inattive: {tool_ids}",
        "EN": "Unknown or inactive options: {tool_ids}",
    },
    "search.insufficientCredits": {
        "FR": "Crédits insuffisants pour cette commande",
        "DE": "Nicht genügend Credits für diese Bestellung",
        "IT": "Crediti insufficienti per questo ordine",
        "EN": "Insufficient credits for this order",
    },
    "search.orderSuccess": {
        "FR": "Commande effectuée avec succès",
        "DE": "Bestellung erfolgreich aufgegeben",
        "IT": "Ordine effettuato con successo",
        "EN": "Order placed successfully",
    },
    "search.orderError": {
        "FR": "Erreur lors de la commande",
        "DE": "Fehler bei der Bestellung",
        "IT": "Errore durante l'ordine",
        "EN": "Order failed",
    },
    "admin.users.requiredFields": {
        "FR": "Tous les champs obligatoires doivent être remplis",
        "DE": "Alle Pflichtfelder müssen ausgefüllt werden",
        "IT": "Tutti i campi obbligatori devono essere compilati",
        "EN": "All required fields must be filled in",
    },
    "admin.users.saveError": {
        "FR": "Erreur lors de la sauvegarde",
        "DE": "Fehler beim Speichern",
        "IT": "Errore durante il salvataggio",
        "EN": "Error while saving",
    },
    "admin.users.statusError": {
        "FR": "Erreur lors du changement de statut",
        "DE": "Fehler beim Ändern des Status",
        "IT": "Errore durante la modifica dello stato",
        "EN": "Error changing user status",
    },
    "admin.users.invalidTransition": {
        "FR": "Transition de statut non autorisée: {current} → {target}",
        "DE": "Unzulässiger Statuswechsel: {current} → {target}",
        "IT": "Transizione di stato non consentita: {current} → {target}",
        "EN": "Status transition not allowed: {current} → {target}",
    },
    "admin.users.creditsError": {
        "FR": "Erreur lors de l'ajout de crédits",
        "DE": "Fehler beim Hinzufügen von Credits",
        "IT": "Errore durante l'aggiunta di crediti",
        "EN": "Error adding credits",
    },
    "admin.users.invalidQuantity": {
        "FR": "La quantité doit être supérieure à 0",
        "DE": "Die Menge muss grösser als 0 sein",
        "IT": "La quantità deve essere maggiore di 0",
        "EN": "Quantity must be greater than 0",
    },
    "admin.translations.requiredFields": {
        "FR": "La clé et la traduction française sont obligatoires",
        "DE": "Schlüssel und französische Übersetzung sind erforderlich",
        "IT": "La chiave e la traduzione francese sono obbligatorie",
        "EN": "Key and French translation are required",
    },
    "admin.translations.keyExists": {
        "FR": "Cette clé existe déjà",
        "DE": "Dieser Schlüssel existiert bereits",
        "IT": "Questa chiave esiste già",
        "EN": "This key already exists",
    },
    "admin.translations.notFound": {
        "FR": "Traduction introuvable",
        "DE": "Übersetzung nicht gefunden",
        "IT": "Traduzione non trovata",
        "EN": "Translation not found",
    },
    "admin.translations.saveError": {
        "FR": "Erreur lors de l'enregistrement de la traduction",
        "DE": "Fehler beim Speichern der Übersetzung",
        "IT": "Errore durante il salvataggio della traduzione",
        "EN": "Error saving translation",
    },
}


def normalize_language(value: Optional[str]) -> str:
    """Map ``de-CH``/``en``/``IT`` style inputs onto a supported language code."""
    token = str(value or "").strip().upper()[:2]
    supported = [code.upper() for code in settings.SUPPORTED_LANGUAGES]
    if token in supported:
        return token
    return settings.DEFAULT_LANGUAGE.upper()


@dataclass(frozen=True)
class LocaleContext:
    """Display language of the current request."""

    language: str

    def t(self, key: str, **params) -> str:
        entry = MESSAGES.get(key)
        if not entry:
            return key
        template = entry.get(self.language) or entry.get(settings.DEFAULT_LANGUAGE.upper()) or key
        if params:
            return template.format(**params)
        return template


def resolve_locale(
    lang: Optional[str] = None,
    header_language: Optional[str] = None,
    accept_language: Optional[str] = None,
) -> LocaleContext:
    """Pick the request language: explicit query, then header, then Accept-Language."""
    for candidate in (lang, header_language):
        if candidate and candidate.strip():
            return LocaleContext(language=normalize_language(candidate))
    if accept_language:
        first = accept_language.split(",", 1)[0].split(";", 1)[0]
        return LocaleContext(language=normalize_language(first))
    return LocaleContext(language=normalize_language(None))
