from rest_framework.negotiation import BaseContentNegotiation


class IgnoreClientContentNegotiation(BaseContentNegotiation):
    """
    Pour les vues qui renvoient un binaire (HttpResponse / FileResponse):
    l'en-tete Accept du client (ex. application/pdf) ne doit pas provoquer
    de 406; les erreurs restent rendues en JSON.
    """

    def select_parser(self, request, parsers):
        return parsers[0]

    def select_renderer(self, request, renderers, format_suffix=None):
        return (renderers[0], renderers[0].media_type)
