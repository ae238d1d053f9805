"""
Centralized French UI messages.
All user-facing text in French for consistency.
"""

MESSAGES = {
    # Success messages
    'login_success': 'Bienvenue {name}',
    'logout_success': 'Déconnexion réussie',
    'profile_updated': 'Profil mis à jour',
    'password_updated': 'Mot de passe mis à jour',
    'reservation_created': 'Réservation créée avec succès',
    'reservation_accepted': 'Réservation acceptée',
    'reservation_rejected': 'Réservation refusée',
    'reservation_deleted': 'Réservation supprimée',
    'commission_created': 'Commission créée avec succès',
    'commission_updated': 'Commission mise à jour',
    'commission_deleted': 'Commission supprimée',
    'location_created': 'Lieu créé avec succès',
    'location_updated': 'Lieu mis à jour',
    'location_deleted': 'Lieu supprimé',
    'user_created': 'Utilisateur créé avec succès',
    'user_created_with_password': 'Utilisateur créé. Mot de passe provisoire : {password}',
    'user_updated': 'Utilisateur mis à jour',
    'user_deleted': 'Utilisateur supprimé',
    'report_sent': 'Rapport du mois {period} envoyé à {count} administrateurs',
    'notification_failed': "La notification par email n'a pas pu être envoyée",

    # Access errors
    'not_authenticated': 'Non authentifié',
    'not_authorized': 'Non autorisé',
    'invalid_credentials': 'Email ou mot de passe incorrect',
    'account_disabled': 'Votre compte a été désactivé. Contactez un administrateur.',
    'access_restricted': 'Accès réservé aux administrateurs et aux membres CEE',
    'admin_only_delete': 'Seuls les administrateurs peuvent supprimer des réservations',
    'location_not_in_commission': 'Vous ne pouvez créer des réservations que pour les lieux de votre commission',
    'commission_scope_only': 'Vous ne pouvez gérer que les réservations de votre commission',

    # Not found
    'commission_not_found': 'Commission introuvable',
    'location_not_found': 'Lieu introuvable',
    'user_not_found': 'Utilisateur introuvable',
    'reservation_not_found': 'Réservation introuvable',

    # Reservation rules
    'slot_taken': 'Ce créneau est déjà réservé',
    'duration_exceeded': (
        'La durée de réservation ne peut pas dépasser {max}h pour ce lieu '
        '(vous avez demandé {requested}h)'
    ),
    'invalid_date_range': 'La date de fin doit être postérieure à la date de début',
    'invalid_datetime': 'Date invalide : {value}',
    'title_required': 'Le titre est requis',
    'rejection_reason_too_short': 'Le motif de refus doit contenir au moins {min} caractères',
    'invalid_transition': 'Transition de statut invalide : {from_status} → {to_status}',

    # Referential guards
    'commission_has_dependencies': 'Impossible de supprimer une commission avec des membres ou des lieux',
    'location_has_reservations': 'Impossible de supprimer un lieu avec des réservations existantes',
    'user_has_reservations': 'Impossible de supprimer un utilisateur avec des réservations existantes',
    'cannot_delete_self': 'Vous ne pouvez pas supprimer votre propre compte',
    'cannot_delete_admin': 'Impossible de supprimer un administrateur',

    # Field validation
    'name_required': 'Le nom est requis',
    'email_exists': 'Cet email est déjà utilisé',
    'invalid_email': "Format d'email invalide",
    'invalid_role': 'Rôle invalide',
    'invalid_color': 'Couleur invalide (format #RRGGBB attendu)',
    'invalid_max_duration': 'La durée maximale doit être un nombre positif',
    'commission_name_exists': 'Une commission porte déjà ce nom',
    'cee_commission_required': 'Une commission est requise pour un membre CEE',
    'commission_only_for_cee': 'Seuls les membres CEE peuvent être rattachés à une commission',
    'invalid_month': 'Mois invalide (format AAAA-MM attendu)',
    'invalid_period': 'Période invalide (current ou previous)',

    # Reports
    'no_admins': 'Aucun administrateur à qui envoyer le rapport',
    'report_send_failed': "Erreur lors de l'envoi du rapport",
    'report_generation_failed': 'Erreur lors de la génération du rapport',
    'unknown_validator': 'Inconnu',

    # Generic
    'internal_error': 'Erreur interne du serveur',
    'confirm_delete': 'Êtes-vous sûr de vouloir supprimer cet élément ?',

    # Reservation statuses
    'status_PENDING': 'En attente',
    'status_ACCEPTED': 'Acceptée',
    'status_REJECTED': 'Refusée',
    'status_CANCELLED': 'Annulée',

    # Roles
    'role_ADMIN': 'Administrateur',
    'role_CEE': 'Membre CEE',
    'role_STUDENT': 'Étudiant',
}


def get_message(key: str, **kwargs) -> str:
    """
    Get message with optional formatting.

    Args:
        key: Message key
        **kwargs: Format parameters

    Returns:
        Formatted message or key if not found
    """
    message = MESSAGES.get(key, key)
    if kwargs:
        return message.format(**kwargs)
    return message
