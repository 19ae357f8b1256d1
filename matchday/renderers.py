from rest_framework.renderers import JSONRenderer


class EnvelopeJSONRenderer(JSONRenderer):
    """Wrap every payload as ``{"success", "data", "message"}``"""

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = (renderer_context or {}).get('response')
        if response is not None and response.status_code == 204:
            return b''
        if not (isinstance(data, dict) and 'success' in data):
            data = {
                'success': response is None or response.status_code < 400,
                'data': data,
                'message': '',
            }
        return super().render(data, accepted_media_type, renderer_context)
