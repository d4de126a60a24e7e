import atexit
import os

import plotly.graph_objs as go
import plotly.io as pio
from flask import Flask, Response, jsonify, render_template_string, request

from blueprints.holdings import holdings_bp
from config import config
from models.portfolio import SortKey
from services.poller import PortfolioPoller
from services.portfolio_service import PortfolioService
from utils import distribution, sparkline
from utils.calculations import PortfolioCalculator
from utils.decorators import handle_api_errors
from utils.export import export_filename

DASHBOARD_TEMPLATE = """
<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>Crypto Portfolio</title>
  <script src="https://cdn.plot.ly/plotly-2.27.0.min.js"></script>
</head>
<body>
  <h1>Crypto Portfolio</h1>
  <nav>{% for code in payload.currencies %}<a href="?currency={{ code }}">{{ code }}</a> {% endfor %}</nav>
  {% if notice %}<p class="notice">{{ notice }}</p>{% endif %}
  <h2>{{ format_currency(payload.total_value, payload.currency) }}</h2>
  <p>{{ format_large_number(payload.total_value) }} {{ payload.currency }} across {{ payload.assets | length }} coins</p>
  <p>{{ format_percentage(payload.daily_change_percentage) }} 24h,
     {{ format_currency(payload.daily_change, payload.currency) }} today</p>
  <div>{{ distribution_html | safe }}</div>
  {% for asset in payload.assets %}
  <div class="coin">
    <h3>{{ asset.name }} ({{ asset.symbol }})</h3>
    <p>{{ format_currency(asset.current_price, payload.currency) }}
       {{ format_percentage(asset.price_change_percentage_24h) }}</p>
    <p>{{ format_quantity(asset.quantity, asset.symbol) }},
       {{ format_currency(asset.total_value, payload.currency) }},
       {{ '%.1f' % asset.portfolio_percentage }}% of portfolio</p>
    {{ sparklines[asset.id] | safe }}
  </div>
  {% endfor %}
  <p>Last updated: {{ payload.last_updated }}</p>
</body>
</html>
"""


def create_app(config_name=None, portfolio_service=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    config_class = config[config_name]
    if hasattr(config_class, 'validate'):
        config_class.validate()
    app.config.from_object(config_class)

    # Initialize services
    if portfolio_service is None:
        portfolio_service = PortfolioService(config=config_class())
    app.extensions['portfolio_service'] = portfolio_service
    app.register_blueprint(holdings_bp)

    if app.config.get('ENABLE_POLLER'):
        poller = PortfolioPoller(portfolio_service, app.config['REFRESH_INTERVAL_SECONDS'])
        poller.start()
        app.extensions['portfolio_poller'] = poller
        atexit.register(poller.stop)

    calculator = PortfolioCalculator()
    app.add_template_global(calculator.format_currency, 'format_currency')
    app.add_template_global(calculator.format_percentage, 'format_percentage')
    app.add_template_global(calculator.format_large_number, 'format_large_number')
    app.add_template_global(calculator.format_quantity, 'format_quantity')

    def _size_arg():
        size = request.args.get('size', app.config['DISTRIBUTION_SIZE'], type=float)
        if size is None or size <= 0:
            raise ValueError("size must be a positive number")
        return size

    @app.route('/')
    def home():
        """Dashboard page with distribution chart and sparklines"""
        currency = request.args.get('currency')
        try:
            sort_key = SortKey.parse(request.args.get('sort'))
            assets = portfolio_service.get_view(request.args.get('search', ''), sort_key)
            payload = portfolio_service.summary_payload(currency, assets)
        except ValueError as e:
            return f"Invalid request: {str(e)}", 400

        distribution_html = pio.to_html(
            _create_distribution_chart(portfolio_service.get_segments(), portfolio_service.inner_radius_ratio),
            full_html=False, include_plotlyjs=False
        )
        sparklines = {}
        for asset in assets:
            color = '#10b981' if (asset.price_change_percentage_24h or 0) >= 0 else '#ef4444'
            geometry = sparkline.render(
                asset.sparkline,
                sparkline.Viewport(width=240, height=48),
                sparkline.SparklineStyle(stroke_width=2, fill_opacity=0.1, color=color)
            )
            sparklines[asset.id] = (pio.to_html(_create_sparkline_chart(geometry), full_html=False,
                                                include_plotlyjs=False) if geometry else '')

        return render_template_string(
            DASHBOARD_TEMPLATE,
            payload=payload,
            notice=payload['notice'],
            distribution_html=distribution_html,
            sparklines=sparklines
        )

    @app.route('/api/portfolio_summary')
    @handle_api_errors
    def api_portfolio_summary():
        """API endpoint to get current portfolio summary"""
        return jsonify(portfolio_service.summary_payload(request.args.get('currency')))

    @app.route('/api/assets')
    @handle_api_errors
    def api_assets():
        """Filtered and sorted asset list"""
        sort_key = SortKey.parse(request.args.get('sort'))
        assets = portfolio_service.get_view(request.args.get('search', ''), sort_key)
        payload = portfolio_service.summary_payload(request.args.get('currency'), assets)
        payload['sort'] = sort_key.value
        return jsonify(payload)

    @app.route('/api/distribution')
    @handle_api_errors
    def api_distribution():
        """Distribution chart segments and wedge paths"""
        size = _size_arg()
        segments = portfolio_service.get_segments()
        geometry = portfolio_service.ring_geometry(size)
        wedges = distribution.wedge_primitives(segments, geometry)
        return jsonify({
            'size': size,
            'inner_radius': geometry.inner_radius,
            'outer_radius': geometry.outer_radius,
            'segments': [dict(w.segment.to_dict(), path=w.path) for w in wedges],
        })

    @app.route('/api/distribution/hit')
    @handle_api_errors
    def api_distribution_hit():
        """Segment under the pointer, for tooltips"""
        x = request.args.get('x', type=float)
        y = request.args.get('y', type=float)
        if x is None or y is None:
            raise ValueError("x and y are required")
        segment = portfolio_service.hit_test(x, y, _size_arg())
        return jsonify({'segment': segment.to_dict() if segment else None})

    @app.route('/api/sparkline/<asset_id>')
    @handle_api_errors
    def api_sparkline(asset_id):
        """Sparkline geometry for one asset"""
        asset = portfolio_service.get_asset(asset_id)
        if asset is None:
            return jsonify({'status': 'error', 'message': f"Unknown asset: {asset_id}"}), 404

        viewport = sparkline.Viewport(
            width=request.args.get('width', 240, type=float),
            height=request.args.get('height', 40, type=float)
        )
        style = sparkline.SparklineStyle(
            stroke_width=request.args.get('stroke_width', 1.5, type=float),
            fill_opacity=request.args.get('fill_opacity', 0.2, type=float)
        )
        geometry = sparkline.render(asset.sparkline, viewport, style)
        return jsonify({'id': asset_id, 'geometry': geometry.to_dict() if geometry else None})

    @app.route('/refresh', methods=['POST'])
    @handle_api_errors
    def refresh():
        """Force a fresh fetch"""
        portfolio_service.refresh()
        return jsonify(portfolio_service.summary_payload(request.args.get('currency')))

    @app.route('/export')
    @handle_api_errors
    def export_csv():
        """Download the current asset list as CSV"""
        sort_key = SortKey.parse(request.args.get('sort'))
        csv_text = portfolio_service.export_csv(request.args.get('search', ''), sort_key)
        app.logger.info("Portfolio data exported")
        return Response(
            csv_text,
            mimetype='text/csv',
            headers={'Content-Disposition': f'attachment; filename="{export_filename()}"'}
        )

    def _create_distribution_chart(segments, inner_radius_ratio):
        """Donut chart from precomputed segments"""
        if not segments:
            empty_fig = go.Figure()
            empty_fig.update_layout(
                height=250,
                annotations=[dict(text="No holdings data available",
                                  showarrow=False,
                                  x=0.5, y=0.5,
                                  xref="paper", yref="paper")]
            )
            return empty_fig

        fig = go.Figure(data=[go.Pie(
            labels=[segment.name for segment in segments],
            values=[segment.value for segment in segments],
            hole=inner_radius_ratio,
            sort=False,
            direction='clockwise',
            rotation=0,
            textinfo='none',
            hovertemplate='<b>%{label}</b><br>Value: $%{value:,.2f}<br>Percentage: %{percent}<extra></extra>',
            marker=dict(colors=[segment.color for segment in segments])
        )])
        fig.update_layout(
            height=250,
            width=250,
            showlegend=False,
            margin=dict(t=0, b=0, l=0, r=0)
        )
        return fig

    def _create_sparkline_chart(geometry):
        """Plot sparkline geometry in pixel coordinates"""
        fig = go.Figure()
        if geometry.fill is not None:
            fig.add_trace(go.Scatter(
                x=[p[0] for p in geometry.fill],
                y=[p[1] for p in geometry.fill],
                fill='toself',
                fillcolor=geometry.fill_color(),
                line=dict(width=0),
                hoverinfo='skip',
                mode='lines'
            ))
        fig.add_trace(go.Scatter(
            x=[p[0] for p in geometry.points],
            y=[p[1] for p in geometry.points],
            mode='lines',
            line=dict(color=geometry.color, width=geometry.stroke_width),
            hoverinfo='skip'
        ))
        fig.update_xaxes(visible=False, range=[0, geometry.viewport.width])
        # Pixel y grows downward
        fig.update_yaxes(visible=False, range=[geometry.viewport.height, 0])
        fig.update_layout(
            width=geometry.viewport.width,
            height=geometry.viewport.height,
            showlegend=False,
            margin=dict(t=0, b=0, l=0, r=0),
            plot_bgcolor='rgba(0,0,0,0)',
            paper_bgcolor='rgba(0,0,0,0)'
        )
        return fig

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
